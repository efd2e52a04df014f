"""
App Categorizer Component
Categorizes purchased apps using the iTunes Search API genre, with
rule-based keyword matching as the fallback.
"""

import threading
from typing import Optional

import requests

import cache_manager
from config.receipt_config import ReceiptConfig, load_receipt_config
from receipt_engine.logging_config import get_logger

logger = get_logger(__name__)

ITUNES_SEARCH_URL = "https://itunes.apple.com/search"

DEFAULT_CATEGORY = '기타'

# Fallback keyword rules on the app name: category -> list of keywords
DEFAULT_CATEGORY_RULES = {
    '게임': ['game', 'games', '게임', 'play', 'quest', 'clash', 'puzzle', 'plus'],
    '생산성': ['task', 'notes', 'office', 'work', 'manager', 'editor', 'study'],
    '엔터': ['music', 'video', 'photo', 'player', 'stream', 'media'],
    '건강': ['fitness', 'health', 'workout', 'tracker', 'diet'],
}

# iTunes primaryGenreName keywords (English and Korean) -> category.
# Checked in order: 'sports' resolves to games before health.
GENRE_CATEGORY_RULES = [
    ('게임', [
        'games', 'action', 'rpg', 'arcade', 'adventure', 'strategy', 'simulation',
        'puzzle', 'board', 'card', 'casino', 'casual', 'racing', 'sports', 'trivia',
        'word', '게임', '액션', '롤플레잉', '아케이드', '어드벤처', '전략', '시뮬레이션',
        '퍼즐', '보드', '카드', '카지노', '캐주얼', '레이싱', '스포츠',
    ]),
    ('생산성', [
        'productivity', 'utilities', 'business', 'education', 'reference', 'finance',
        'news', 'navigation', 'books', 'magazines', '생산성', '유틸리티', '비즈니스',
        '교육', '참고', '금융', '뉴스', '내비게이션', '도서',
    ]),
    ('엔터', [
        'music', 'entertainment', 'photo', 'video', 'social', 'lifestyle', 'travel',
        'food', 'drink', 'shopping', '음악', '엔터테인먼트', '사진', '비디오', '소셜',
        '라이프스타일', '여행', '음식',
    ]),
    ('건강', [
        'health', 'fitness', 'medical', 'sports', '건강', '피트니스', '의료',
    ]),
]

# In-process cache: app name -> category
_category_cache: dict[str, str] = {}
_cache_lock = threading.Lock()


def get_fallback_category(app_name: str) -> str:
    """
    Categorize an app by keywords in its name.

    Args:
        app_name: App name as extracted from the receipt

    Returns:
        Category name (string)
    """
    name = (app_name or '').lower()
    for category, keywords in DEFAULT_CATEGORY_RULES.items():
        if any(keyword in name for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def map_genre_to_category(genre: str) -> str:
    """Map an iTunes primaryGenreName to one of our categories."""
    genre_lower = (genre or '').lower()
    for category, keywords in GENRE_CATEGORY_RULES:
        if any(keyword in genre_lower for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def lookup_itunes_genre(app_name: str, config: ReceiptConfig) -> Optional[str]:
    """
    Search the iTunes catalog for an app and return its primary genre.

    Returns:
        Genre name, or None if the app was not found or the request failed
    """
    try:
        response = requests.get(
            ITUNES_SEARCH_URL,
            params={
                'term': app_name,
                'entity': 'software',
                'limit': 1,
                'country': config.category_country,
                'lang': 'en_us',
            },
            timeout=config.category_lookup_timeout,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Failed to fetch category for {app_name}: {e}")
        return None

    if data.get('resultCount', 0) > 0 and data.get('results'):
        return data['results'][0].get('primaryGenreName')
    return None


def get_app_category(app_name: str, config: Optional[ReceiptConfig] = None) -> str:
    """
    Categorize a purchased app.

    Lookup order: in-process cache → Redis cache → iTunes Search API →
    keyword fallback. Whatever is decided gets cached.

    Args:
        app_name: App name as extracted from the receipt
        config: Receipt configuration (loaded from environment if omitted)

    Returns:
        Category name (string)
    """
    if not app_name:
        return DEFAULT_CATEGORY

    with _cache_lock:
        if app_name in _category_cache:
            return _category_cache[app_name]

    cached = cache_manager.get_cached_category(app_name)
    if cached:
        with _cache_lock:
            _category_cache[app_name] = cached
        return cached

    config = config or load_receipt_config()

    genre = lookup_itunes_genre(app_name, config)
    if genre:
        category = map_genre_to_category(genre)
        logger.info(f"Found category for {app_name}: {genre} -> {category}")
    else:
        category = get_fallback_category(app_name)
        logger.info(f"Using fallback for {app_name}: {category}")

    with _cache_lock:
        _category_cache[app_name] = category
    cache_manager.cache_category(app_name, category, ttl=config.category_cache_ttl)

    return category


def clear_category_cache():
    """Drop the in-process category cache."""
    with _cache_lock:
        _category_cache.clear()
