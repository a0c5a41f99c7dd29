"""
Stock media search (Pexels, Unsplash) and conversion of hits into timeline assets.
"""

import logging
import math
from urllib.parse import quote_plus

import httpx
from tqdm import tqdm

from .models import AssetSearchResult, MediaAsset

logger = logging.getLogger("narrator")

PEXELS_API_URL = "https://api.pexels.com/v1"
PEXELS_VIDEO_API_URL = "https://api.pexels.com/videos"
UNSPLASH_API_URL = "https://api.unsplash.com"

SAMPLE_VIDEO_URL = "https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_1mb.mp4"


def _get(http: httpx.Client | None, url: str, params: dict, headers: dict) -> dict:
    if http is not None:
        r = http.get(url, params=params, headers=headers)
    else:
        with httpx.Client(timeout=30.0) as client:
            r = client.get(url, params=params, headers=headers)
    r.raise_for_status()
    return r.json()


def search_videos(
    api_key: str | None,
    query: str,
    count: int = 5,
    orientation: str = "landscape",
    *,
    http: httpx.Client | None = None,
) -> list[AssetSearchResult]:
    """Search Pexels videos. Without an API key, sample results are returned."""
    if not api_key:
        logger.info("Pexels API key not configured, returning sample videos")
        return [
            AssetSearchResult(
                id=f"dummy-video-{i}",
                url=SAMPLE_VIDEO_URL,
                thumbnail_url=f"https://via.placeholder.com/640x360/0066cc/ffffff?text=Video+{i + 1}",
                type="video",
                source="pexels",
                description=f"Sample video for {query}",
                tags=[query],
                duration=10.0,
            )
            for i in range(count)
        ]

    try:
        data = _get(
            http,
            f"{PEXELS_VIDEO_API_URL}/search",
            {"query": query, "per_page": count, "orientation": orientation, "size": "medium"},
            {"Authorization": api_key},
        )
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Pexels video search failed for %r: %s", query, e)
        return []

    out: list[AssetSearchResult] = []
    for video in data.get("videos") or []:
        files = video.get("video_files") or []
        hd = next((f for f in files if f.get("quality") == "hd"), None)
        link = (hd or (files[0] if files else {})).get("link")
        if not link:
            continue
        out.append(
            AssetSearchResult(
                id=str(video.get("id")),
                url=link,
                thumbnail_url=video.get("image", ""),
                type="video",
                source="pexels",
                description=video.get("url", ""),
                tags=[query],
                duration=float(video.get("duration") or 10),
            )
        )
    return out


def search_images(
    api_key: str | None,
    query: str,
    count: int = 5,
    orientation: str = "landscape",
    *,
    http: httpx.Client | None = None,
) -> list[AssetSearchResult]:
    """Search Pexels photos. Without an API key, placeholder images are returned."""
    if not api_key:
        logger.info("Pexels API key not configured, returning placeholder images")
        return [
            AssetSearchResult(
                id=f"dummy-image-{i}",
                url=(
                    f"https://via.placeholder.com/1920x1080/0066cc/ffffff"
                    f"?text=Image+{i + 1}+for+{quote_plus(query)}"
                ),
                thumbnail_url=f"https://via.placeholder.com/640x360/0066cc/ffffff?text=Image+{i + 1}",
                type="image",
                source="pexels",
                description=f"Sample image for {query}",
                tags=[query],
            )
            for i in range(count)
        ]

    try:
        data = _get(
            http,
            f"{PEXELS_API_URL}/search",
            {"query": query, "per_page": count, "orientation": orientation, "size": "medium"},
            {"Authorization": api_key},
        )
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Pexels image search failed for %r: %s", query, e)
        return []

    return [
        AssetSearchResult(
            id=str(photo.get("id")),
            url=photo["src"]["large"],
            thumbnail_url=photo["src"].get("medium", ""),
            type="image",
            source="pexels",
            description=photo.get("alt") or query,
            tags=[query],
        )
        for photo in data.get("photos") or []
        if (photo.get("src") or {}).get("large")
    ]


def search_photos(
    access_key: str | None,
    query: str,
    count: int = 5,
    orientation: str = "landscape",
    *,
    http: httpx.Client | None = None,
) -> list[AssetSearchResult]:
    """Search Unsplash photos. Without an access key, placeholder images are returned."""
    if not access_key:
        logger.info("Unsplash access key not configured, returning placeholder images")
        return [
            AssetSearchResult(
                id=f"dummy-unsplash-{i}",
                url=(
                    f"https://via.placeholder.com/1920x1080/4a90e2/ffffff"
                    f"?text=Unsplash+{i + 1}+for+{quote_plus(query)}"
                ),
                thumbnail_url=f"https://via.placeholder.com/640x360/4a90e2/ffffff?text=Unsplash+{i + 1}",
                type="image",
                source="unsplash",
                description=f"Sample Unsplash image for {query}",
                tags=[query],
            )
            for i in range(count)
        ]

    # Unsplash calls square images "squarish"
    if orientation == "square":
        orientation = "squarish"
    try:
        data = _get(
            http,
            f"{UNSPLASH_API_URL}/search/photos",
            {"query": query, "per_page": count, "orientation": orientation, "order_by": "relevant"},
            {"Authorization": f"Client-ID {access_key}"},
        )
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Unsplash search failed for %r: %s", query, e)
        return []

    out: list[AssetSearchResult] = []
    for photo in data.get("results") or []:
        urls = photo.get("urls") or {}
        if not urls.get("regular"):
            continue
        tags = [t.get("title") for t in photo.get("tags") or [] if t.get("title")]
        out.append(
            AssetSearchResult(
                id=str(photo.get("id")),
                url=urls["regular"],
                thumbnail_url=urls.get("small", ""),
                type="image",
                source="unsplash",
                description=photo.get("alt_description") or photo.get("description") or query,
                tags=tags or [query],
            )
        )
    return out


def search_assets(
    queries: list[str],
    *,
    pexels_key: str | None = None,
    unsplash_key: str | None = None,
    per_query: int = 2,
    orientation: str = "landscape",
    include_videos: bool = True,
    http: httpx.Client | None = None,
) -> list[AssetSearchResult]:
    """Run every query against the configured sources and de-duplicate hits by URL."""
    seen: set[str] = set()
    results: list[AssetSearchResult] = []
    for query in tqdm(queries, desc="Stock search", disable=not queries):
        hits: list[AssetSearchResult] = []
        if include_videos:
            hits += search_videos(pexels_key, query, per_query, orientation, http=http)
        hits += search_images(pexels_key, query, per_query, orientation, http=http)
        hits += search_photos(unsplash_key, query, per_query, orientation, http=http)
        for hit in hits:
            if hit.url in seen:
                continue
            seen.add(hit.url)
            results.append(hit)
    logger.info("Stock search: %d queries -> %d unique assets", len(queries), len(results))
    return results


def assets_from_results(
    results: list[AssetSearchResult], total_duration: float, slot_secs: float = 5.0
) -> list[MediaAsset]:
    """
    Place search hits back to back in fixed slots, cycling through them until
    ``total_duration`` is covered. The last slot is cut at the total.
    """
    if not results or not total_duration > 0 or not slot_secs > 0:
        return []

    assets: list[MediaAsset] = []
    slots = math.ceil(total_duration / slot_secs)
    for i in range(slots):
        hit = results[i % len(results)]
        start = i * slot_secs
        end = min(start + slot_secs, total_duration)
        if end <= start:
            break
        assets.append(
            MediaAsset(
                type=hit.type,
                url=hit.url,
                duration=end - start,
                start_time=start,
                end_time=end,
                description=hit.description,
            )
        )
    return assets


def custom_assets(urls: list[str], total_duration: float, slot_secs: float = 5.0) -> list[MediaAsset]:
    """User-supplied image/video URLs, placed the same way as search hits."""
    video_ext = (".mp4", ".mov", ".webm", ".m4v")
    results = [
        AssetSearchResult(
            id=f"custom-{i}",
            url=u,
            thumbnail_url=u,
            type="video" if u.lower().split("?")[0].endswith(video_ext) else "image",
            source="custom",
            description="Custom asset",
            tags=[],
        )
        for i, u in enumerate(urls)
        if u.strip()
    ]
    return assets_from_results(results, total_duration, slot_secs)
