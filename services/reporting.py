from __future__ import annotations

from typing import Any, Dict, Optional


def print_summary(title: str, stats: Dict[str, Any], api_usage: Optional[Dict[str, Any]] = None) -> None:
    """Print a short end-of-run summary."""
    print("\n" + "="*60)
    print(f"NOTION CV - {title.upper()}")
    print("="*60)
    for key, value in stats.items():
        label = key.replace("_", " ").capitalize()
        print(f"{label}: {value}")
    if api_usage:
        print()
        print(f"API Calls Made: {api_usage.get('api_calls_made', 0)}")
        if "images_downloaded" in api_usage:
            print(f"Images Downloaded: {api_usage['images_downloaded']}")
            print(f"Images Reused From Cache: {api_usage.get('images_reused', 0)}")
    print("="*60)
