#!/usr/bin/env python3
"""
Run one store search from the command line.

Usage:
    # Search around the default location (Ginza, Tokyo)
    python -m scripts.find_stores

    # Search around a point
    python -m scripts.find_stores --lat 35.6595 --lng 139.7005

    # Search around an address, save the result
    python -m scripts.find_stores --address "Shibuya Station" --output stores.json

Environment variables required:
    GEMINI_API_KEY=your-gemini-key
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load .env file
from dotenv import load_dotenv
load_dotenv(project_root / ".env")

from storefinder.config import get_settings
from storefinder.finder.exceptions import StoreFinderError
from storefinder.finder.geocoder import Geocoder
from storefinder.finder.map_view import build_map_view, store_link
from storefinder.finder.models import Coordinates, SearchResult, StoreRecord
from storefinder.finder.query_service import StoreQueryService, build_client


def print_store(store: StoreRecord, index: int, origin: Coordinates) -> None:
    """Print one store."""
    position = f"{store.lat:.4f}, {store.lng:.4f}" if store.is_mappable else "N/A (not on map)"

    print(f"\n  [{index}] {store.name}")
    print(f"      Address: {store.address}")
    print(f"      Position: {position}")
    print(f"      Link: {store_link(store, origin)}")


def print_result(center: Coordinates, result: SearchResult) -> None:
    """Print a search result."""
    mappable = sum(1 for s in result.stores if s.is_mappable)

    print("\n" + "-" * 60)
    print(f"Center: {center.latitude:.4f}, {center.longitude:.4f}")
    print(f"Found: {len(result.stores)} stores ({mappable} on map)")
    print(f"Grounding sources: {len(result.grounding_chunks)}")

    if not result.stores:
        print("\n  No stores found nearby.")

    for i, store in enumerate(result.stores, 1):
        print_store(store, i, center)


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    client = build_client(settings)

    try:
        if args.lat is not None and args.lng is not None:
            center = Coordinates(latitude=args.lat, longitude=args.lng)
        elif args.address:
            center = await Geocoder(settings, client=client).geocode(args.address)
            if center is None:
                print(f"\n ERROR: could not find '{args.address}'. Try a more specific address.")
                return 1
        else:
            center = Coordinates(
                latitude=settings.default_latitude,
                longitude=settings.default_longitude,
            )
            print(f"Using default location: {settings.default_location_label}")

        result = await StoreQueryService(settings, client=client).search(center)
    except StoreFinderError as e:
        print(f"\n ERROR: {e.message}")
        return 1

    print_result(center, result)

    if args.show_raw:
        print("\nRaw response:\n")
        print(result.text)

    if args.output:
        map_view = build_map_view(
            center,
            result.stores,
            radius_km=settings.search_radius_km,
            zoom=settings.map_zoom,
        )
        output = {
            "center": center.model_dump(),
            "stores": [s.model_dump() for s in result.stores],
            "map": map_view.model_dump(),
            "text": result.text,
        }
        with open(args.output, "w") as f:
            json.dump(output, f, indent=2, ensure_ascii=False)
        print(f"\nSaved: {args.output}")

    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Find nearby stores with Gemini + Google Maps grounding")
    parser.add_argument("--lat", type=float, help="Latitude of the search center")
    parser.add_argument("--lng", type=float, help="Longitude of the search center")
    parser.add_argument("--address", help="Free-text place to search around")
    parser.add_argument("--output", help="Write the result as JSON to this file")
    parser.add_argument("--show-raw", action="store_true", help="Print the raw model answer")
    args = parser.parse_args()

    if (args.lat is None) != (args.lng is None):
        parser.error("--lat and --lng must be given together")

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
