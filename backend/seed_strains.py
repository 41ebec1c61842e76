"""Seed the catalog with strains and random stock.

Reads data/strains.json when present (output of the catalog scraper),
otherwise uses the built-in strain list. Existing catalog and order data is
wiped first.

    python seed_strains.py [--keep-orders]
"""
import argparse
import json
import random
from pathlib import Path

from greenleaf.core.log_config import configure_logging
from greenleaf.db.init_db import init_db
from greenleaf.db.session import SessionLocal
from greenleaf.models import Cart, CartItem, Inventory, Order, OrderItem, Strain

DATA_FILE = Path(__file__).resolve().parent / "data" / "strains.json"
IMAGE_URL = "https://images.leafly.com/flower250/{slug}.png"

FALLBACK_STRAINS = [
    {
        "name": "Blue Dream", "slug": "blue-dream", "type": "HYBRID", "thc_percent": 21, "cbd_percent": 0.1,
        "effects": ["relaxed", "happy", "euphoric", "uplifted", "creative"],
        "flavors": ["blueberry", "sweet", "berry"],
        "description": "Blue Dream is a sativa-dominant hybrid that balances full-body relaxation with gentle cerebral invigoration.",
    },
    {
        "name": "OG Kush", "slug": "og-kush", "type": "HYBRID", "thc_percent": 23, "cbd_percent": 0.3,
        "effects": ["relaxed", "happy", "euphoric", "uplifted", "hungry"],
        "flavors": ["earthy", "pine", "woody"],
        "description": "OG Kush is a legendary strain with a complex aroma of fuel, skunk, and spice.",
    },
    {
        "name": "Sour Diesel", "slug": "sour-diesel", "type": "SATIVA", "thc_percent": 22, "cbd_percent": 0.2,
        "effects": ["energetic", "happy", "uplifted", "euphoric", "creative"],
        "flavors": ["diesel", "pungent", "earthy"],
        "description": "Sour Diesel is an invigorating sativa-dominant strain named after its pungent, diesel-like aroma.",
    },
    {
        "name": "Girl Scout Cookies", "slug": "girl-scout-cookies", "type": "HYBRID", "thc_percent": 25, "cbd_percent": 0.2,
        "effects": ["relaxed", "happy", "euphoric", "uplifted", "creative"],
        "flavors": ["sweet", "earthy", "pungent"],
        "description": "Girl Scout Cookies is a potent hybrid that delivers full-body relaxation and cerebral euphoria.",
    },
    {
        "name": "Granddaddy Purple", "slug": "granddaddy-purple", "type": "INDICA", "thc_percent": 20, "cbd_percent": 0.1,
        "effects": ["relaxed", "sleepy", "happy", "euphoric", "hungry"],
        "flavors": ["grape", "berry", "sweet"],
        "description": "Granddaddy Purple is a famous indica cross with complex grape and berry aromas.",
    },
    {
        "name": "Jack Herer", "slug": "jack-herer", "type": "SATIVA", "thc_percent": 21, "cbd_percent": 0.1,
        "effects": ["happy", "uplifted", "energetic", "creative", "focused"],
        "flavors": ["earthy", "pine", "woody"],
        "description": "Jack Herer is a sativa-dominant strain named after the cannabis activist and author.",
    },
    {
        "name": "Northern Lights", "slug": "northern-lights", "type": "INDICA", "thc_percent": 18, "cbd_percent": 0.1,
        "effects": ["relaxed", "sleepy", "happy", "euphoric", "hungry"],
        "flavors": ["earthy", "pine", "sweet"],
        "description": "Northern Lights is one of the most famous indica strains, known for its resinous buds and fast flowering.",
    },
    {
        "name": "Green Crack", "slug": "green-crack", "type": "SATIVA", "thc_percent": 22, "cbd_percent": 0.1,
        "effects": ["energetic", "focused", "happy", "uplifted", "creative"],
        "flavors": ["citrus", "earthy", "sweet"],
        "description": "Green Crack is a sharp sativa that provides an invigorating mental buzz to keep you going through the day.",
    },
    {
        "name": "Bubba Kush", "slug": "bubba-kush", "type": "INDICA", "thc_percent": 17, "cbd_percent": 0.1,
        "effects": ["relaxed", "sleepy", "happy", "hungry", "euphoric"],
        "flavors": ["earthy", "sweet", "coffee"],
        "description": "Bubba Kush is a heavy indica with tranquilizing effects, a favorite for relaxation.",
    },
    {
        "name": "Harlequin", "slug": "harlequin", "type": "SATIVA", "thc_percent": 7, "cbd_percent": 10,
        "effects": ["relaxed", "focused", "happy", "uplifted", "energetic"],
        "flavors": ["earthy", "mango", "sweet"],
        "description": "Harlequin is a CBD-rich sativa known for clear-headed, alert effects with little intoxication.",
    },
]


def load_strains():
    if DATA_FILE.exists():
        print(f"Loading strains from {DATA_FILE}")
        return json.loads(DATA_FILE.read_text(encoding="utf-8"))
    print("No scraped data found, using built-in strains...")
    return FALLBACK_STRAINS


def random_price() -> float:
    """$8.00 - $18.00 per gram."""
    return round(random.uniform(8, 18), 2)


def random_quantity() -> int:
    """10 - 99 grams."""
    return random.randint(10, 99)


def seed_strains(keep_orders: bool = False):
    init_db()
    db = SessionLocal()
    try:
        print("Clearing existing data...")
        if not keep_orders:
            db.query(OrderItem).delete()
            db.query(Order).delete()
        db.query(CartItem).delete()
        db.query(Cart).delete()
        db.query(Inventory).delete()
        db.query(Strain).delete()
        db.commit()

        created = 0
        for data in load_strains():
            strain = Strain(
                name=data["name"],
                slug=data["slug"],
                type=data["type"],
                thc_percent=data.get("thc_percent"),
                cbd_percent=data.get("cbd_percent"),
                effects=data.get("effects", []),
                flavors=data.get("flavors", []),
                description=data.get("description"),
                leafly_url=data.get("leafly_url") or f"https://www.leafly.com/strains/{data['slug']}",
                image_url=data.get("image_url") or IMAGE_URL.format(slug=data["slug"]),
            )
            strain.inventory = Inventory(quantity=random_quantity(), price_per_gram=random_price())
            db.add(strain)
            created += 1
            print(f"  Created strain: {strain.name}")

        db.commit()
        print(f"\nSeed complete! Created {created} strains with inventory.")
        print("Run generate_embeddings.py next to enable similarity search and the budtender.")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--keep-orders", action="store_true", help="do not delete existing orders")
    args = parser.parse_args()
    configure_logging()
    seed_strains(keep_orders=args.keep_orders)
