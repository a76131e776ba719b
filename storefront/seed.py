"""
Sample catalog and testimonials.

Seeds a storage backend only when it has no apps yet, so it is safe to run
on every startup.

Run command:
    python -m storefront.seed
"""
import logging
from decimal import Decimal

from .storage.base import Storage

logger = logging.getLogger(__name__)

SAMPLE_APPS = [
    {
        "id": "9aa868f3-75eb-4347-8c16-57d2db73a890",
        "name": "Harikoa Kainga",
        "description": "Real estate platform for property discovery and management.",
        "long_description": (
            "Property search, analytics and management workflows built on React, "
            "TypeScript and PostgreSQL, ready for commercial deployment."
        ),
        "price": Decimal("150000.00"),
        "category": "web",
        "image_url": "https://images.unsplash.com/photo-1560520653-9e0e4c89eb11?auto=format&fit=crop&w=800&h=400",
        "demo_url": None,
        "technologies": ["React 18", "TypeScript", "Next.js", "PostgreSQL"],
        "features": ["Advanced Property Search", "Interactive Property Analytics", "Responsive Mobile Design"],
        "is_premium": True,
    },
    {
        "id": "58a9d02e-bc18-4350-ae8f-2df3b743f44c",
        "name": "Asset Timer",
        "description": "Market timing dashboard for Gold, Bitcoin, stocks, and commodities",
        "long_description": (
            "Tracks historical cycles for Gold, Bitcoin, the S&P 500, real estate and oil "
            "with real-time prices, seasonal patterns and buy/sell signals."
        ),
        "price": Decimal("49.99"),
        "category": "web",
        "image_url": "https://images.unsplash.com/photo-1611974789855-9c2a0a7236a3?auto=format&fit=crop&w=800&h=400",
        "demo_url": "https://asset-timer.replit.app",
        "technologies": ["React", "TypeScript", "Financial APIs", "Chart.js"],
        "features": ["Real-time market data", "Historical cycle analysis", "Buy/sell signals"],
        "is_premium": True,
    },
    {
        "id": "7d7bd30c-97e8-44b3-a7aa-d6c90338b998",
        "name": "Stockmentor",
        "description": "High-performance S&P 500 stock screener with real-time analysis",
        "long_description": (
            "Technical and fundamental analysis for S&P 500 stocks with parallel "
            "processing, scoring and BUY/WAIT/SELL signals."
        ),
        "price": Decimal("79.99"),
        "category": "web",
        "image_url": "https://images.unsplash.com/photo-1590283603385-17ffb3a7f29f?auto=format&fit=crop&w=800&h=400",
        "demo_url": "https://stock-compass-gadgetboy27.replit.app",
        "technologies": ["Python", "Streamlit", "Yahoo Finance API"],
        "features": ["Momentum indicators (RSI, MACD)", "Risk assessment", "Export to CSV"],
        "is_premium": True,
    },
    {
        "id": "b5b06f6b-21ca-4e4d-a67c-a2923535855d",
        "name": "AI Stock Picker",
        "description": "AI-powered stock analysis and investment recommendation platform",
        "price": Decimal("99.99"),
        "category": "mobile",
        "image_url": "https://images.unsplash.com/photo-1551288049-bebda4e38f71?auto=format&fit=crop&w=800&h=400",
        "demo_url": "https://mobile-invest-gadgetboy27.replit.app",
        "technologies": ["AI/ML", "Python", "Predictive Analytics"],
        "features": ["AI stock analysis", "Portfolio optimization", "Real-time alerts"],
        "is_premium": True,
    },
    {
        "id": "5dbb9b07-c8b7-4a8b-b5be-88019be4f77c",
        "name": "Dev Tools Suite",
        "description": "Collection of developer productivity tools",
        "price": None,
        "category": "web",
        "image_url": "https://images.unsplash.com/photo-1555066931-4365d14bab8c?auto=format&fit=crop&w=800&h=400",
        "demo_url": "https://devtools.henrypeti.dev",
        "github_url": "https://github.com/gadgetboy27/dev-tools-suite",
        "technologies": ["Vanilla JavaScript", "CSS3", "Service Workers"],
        "features": ["JSON formatter", "Base64 encoder", "Regex tester"],
        "is_premium": False,
    },
]

SAMPLE_TESTIMONIALS = [
    {
        "name": "Sarah Chen",
        "company": "TechFlow Inc.",
        "position": "Project Manager",
        "content": "Delivered an exceptional mobile app that exceeded our expectations.",
    },
    {
        "name": "Marcus Rodriguez",
        "company": "StartupLab",
        "position": "CTO",
        "content": "Understood our complex requirements and delivered on time and within budget.",
    },
    {
        "name": "David Kim",
        "company": "DataDriven Solutions",
        "position": "Lead Analyst",
        "content": "The analytics dashboard transformed how we visualize our data.",
    },
]


def seed_catalog(storage: Storage) -> bool:
    """Insert sample apps and testimonials into an empty store. Returns True if seeded."""
    if storage.get_apps():
        logger.info("Catalog already populated, skipping seed")
        return False

    for app in SAMPLE_APPS:
        storage.create_app(**dict(app))
    for testimonial in SAMPLE_TESTIMONIALS:
        storage.create_testimonial(**dict(testimonial))

    logger.info(f"Seeded {len(SAMPLE_APPS)} apps and {len(SAMPLE_TESTIMONIALS)} testimonials")
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    from .db import Base, get_engine, get_session_local
    from .storage.database import DatabaseStorage

    Base.metadata.create_all(bind=get_engine())
    db = get_session_local()()
    try:
        seed_catalog(DatabaseStorage(db))
    finally:
        db.close()
