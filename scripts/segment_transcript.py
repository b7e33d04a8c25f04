#!/usr/bin/env python3
"""Segment a transcript file into topics and print them."""

import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv

load_dotenv()

from podnav.services import segment_parser
from podnav.services.segment_parser import SegmentationError, format_time
from podnav.services.segment_source import OpenAISegmentSource, SegmentSourceError


async def run(path: str, model: str, as_json: bool) -> int:
    with open(path, 'r', encoding='utf-8') as f:
        transcript = f.read()

    source = OpenAISegmentSource(model=model)
    try:
        raw = await source.segment_transcript(transcript)
        topics = segment_parser.parse(raw)
    except (SegmentSourceError, SegmentationError) as e:
        print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps([t.model_dump() for t in topics], indent=2))
        return 0

    print(f"✅ {len(topics)} topics")
    for i, topic in enumerate(topics):
        print(f"  [{i}] {format_time(topic.start_time)} - {format_time(topic.end_time)}  {topic.title}")
    return 0


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("transcript", help="Path to a plain-text transcript")
    parser.add_argument("--model", default=None, help="OpenAI model (default from settings)")
    parser.add_argument("--json", action="store_true", help="Print topics as JSON")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.transcript, args.model, args.json)))


if __name__ == '__main__':
    main()
