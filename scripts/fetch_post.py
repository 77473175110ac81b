#!/usr/bin/env python3
"""
Manual acquisition check - fetch a post through the live provider chain.

Shows which provider answered, which ones failed before it, and the
reconstructed thread.

Usage:
    python scripts/fetch_post.py [URL] [--save]

Example:
    python scripts/fetch_post.py https://x.com/jack/status/20
    python scripts/fetch_post.py https://x.com/jack/status/20 --save
"""
import asyncio
import dataclasses
import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from content_ingest.acquisition import acquisition_service, parse_post_url
from content_ingest.errors import InvalidTarget


async def fetch_post(url: str, save: bool = False) -> None:
    """Fetch one post and print the acquisition outcome."""
    print(f"\n{'=' * 60}")
    print(f"Fetching: {url}")
    print(f"{'=' * 60}\n")

    try:
        result = await acquisition_service.fetch_post(url)
    except InvalidTarget as e:
        print(f"Invalid URL: {e}")
        return

    for error in result.errors:
        print(f"   x {error.provider}: {error.reason}")

    if not result.success:
        print("\nAll providers failed")
        return

    post = result.payload
    print(f"\nServed by: {result.source}")
    print(f"   - Author: {post.author} (@{post.author_handle})")
    print(f"   - Date: {post.timestamp_raw or 'N/A'}")
    print(f"   - Media: {len(post.media)}")
    print(f"   - Likes/Reshares/Replies: "
          f"{post.metrics.likes}/{post.metrics.reshares}/{post.metrics.replies}")
    print(f"   - Thread: {len(post.thread)} replies")

    if save:
        target = parse_post_url(url)
        samples_dir = Path("tests/samples")
        samples_dir.mkdir(parents=True, exist_ok=True)
        filepath = samples_dir / f"post_{target.handle}_{target.post_id}.json"
        filepath.write_text(
            json.dumps(dataclasses.asdict(post), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        print(f"\nSaved: {filepath}")
    else:
        print(f"\n{'-' * 60}")
        print(post.text)
        for reply in post.thread:
            print(f"\n> {reply.text}")


def main():
    args = sys.argv[1:]
    save = "--save" in args
    args = [a for a in args if a != "--save"]
    url = args[0] if args else "https://x.com/jack/status/20"
    asyncio.run(fetch_post(url, save=save))


if __name__ == "__main__":
    main()
