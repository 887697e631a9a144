#!/usr/bin/env python3
"""Chunk and embed the FAQ document, replacing the stored FAQ chunks.

Usage: python scripts/ingest_faq.py [content/faq.pdf]
The path defaults to FAQ_PDF_PATH. PDFs have their text extracted; other
files are read as plain text or markdown.
Needs OPENAI_API_KEY and DATABASE_URL (or a .env file).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from volunteer_portal.core.config import settings
from volunteer_portal.core.db import Base, SessionLocal, engine
from volunteer_portal.services.errors import ServiceError
from volunteer_portal.services.faq_service import FaqService, load_faq_text

logger = logging.getLogger("ingest_faq")


async def ingest(text: str) -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        return await FaqService().ingest(db, text)
    finally:
        db.close()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", type=Path, nargs="?", default=Path(settings.FAQ_PDF_PATH),
                        help="FAQ PDF, or a plain-text / markdown export")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    if not args.path.is_file():
        logger.error("FAQ file not found: %s", args.path)
        return 1

    try:
        text = load_faq_text(args.path)
        count = asyncio.run(ingest(text))
    except ServiceError as e:
        logger.error("%s", e.message)
        return 1

    print(f"Inserted {count} chunks into faq_chunks")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
