"""AirOps brand kit: embedded seed, startup fetch and the cached prompt cell.

The seed mirrors AirOps brand kit 26564 (AirOps 2026). When ``AIROPS_API_KEY``
is set, a refreshed kit is fetched once at startup and swapped in; requests
served before the fetch completes use the seed.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx
from pydantic import ValidationError

from ..core.config import Settings
from ..core.structured_logging import log_external_call
from ..models.exceptions import BrandKitFetchException
from ..models.schemas import BrandKit
from .prompts import build_system_prompt

logger = logging.getLogger(__name__)

SEED_SOURCE = "seed"
LIVE_SOURCE = "airops_api"

STATIC_BRAND_KIT = BrandKit(
    brand_name="AirOps 2026",
    brand_url="airops.com",
    brand_about=(
        "At AirOps, we help brands craft content that wins search. We power content strategy, creation, "
        "and performance so your brand gets seen, cited, and celebrated as search changes across Google "
        "and AI experiences.\n\n"
        "Search isn't clicking like it used to. AI is reshaping how people discover and connect with "
        "brands, and content quality, craft, and genuine information now play a bigger role in staying "
        "visible. We believe this is the moment for marketers to pair creativity and taste with systems "
        "design to increase impact.\n\n"
        "AirOps is where big ideas become real results, and where marketers become leaders in the new era "
        "of Content Engineering."
    ),
    writing_persona=(
        "Think of AirOps as your easy-going, intelligent, and animated friend who shows up early with "
        "coffee, eager to explore the day's adventures. When you spend time with them, you feel "
        "comfortable and intrigued with what topic they'll bring next. They flow smoothly from deep, "
        "complicated subjects to lighthearted stories that leave you laughing. They're social, friendly, "
        "and don't believe in hoarding useful knowledge. They share what they know so everyone around "
        "them is more independent and capable. They live with a growth mindset, and that spirit is "
        "contagious. Your success is their success. If life and career is a game, they play it like "
        "professionals, not amateurs. We speak like experienced and friendly coaches - inclusive, "
        "welcoming, and respectful when talking tech. We treat every partner and project seriously, "
        "educating without patronizing or confusing. Using conversational voice and playful humor, we "
        "bring joy to their work, preferring the subtle over the noisy."
    ),
    writing_tone=(
        "Voice stays constant; tone flexes by context. Our voice is expert, optimistic, and empowering. "
        "We write with authority from building first-of-their-kind products, but stay warm and human. "
        "We lead with clarity, empathy, and subtle wit. We use direct, instructional language that stays "
        "businesslike but readable, favoring second-person (\"your brand,\" \"you need\") and short "
        "paragraphs. Structure is scannable: bolded TL;DR sections, H2/H3 headings framed as questions, "
        "step-by-step sequences. We back claims with concrete data, metrics, and named platforms."
    ),
    writing_rules=[
        'Use a skimmable outline built from H2/H3 headings, including step-based sections ("Step 1," "Step 2," etc.) or numbered strategy lists for process content.',
        'Open with a bolded "TL;DR" section that summarizes the piece in 4-6 bullet points.',
        'Address the reader directly with second-person language and keep paragraphs short (often 1-3 sentences), using bullet lists for examples, criteria, and definitions.',
        'Never use em dashes as dramatic pauses. If a sentence needs one to hold together, rewrite it. Use a period instead.',
        'Never start sentences with "In today\'s world," "In an era where," or similar scene-setting clichés. Get to the point directly.',
        'Never use "delve into," "it\'s worth noting that," or "leveraging." Use specific verbs: explore, use, tap, apply, connect, build.',
        'Avoid the "if X, then Y" construction. Replace with plain, direct language.',
        'Never use hollow affirmations like "Great question!" or "Absolutely!" or "Certainly!" at the start of responses.',
        'Avoid overly formal transitions like "Furthermore," "Moreover," and "Additionally."',
        'Don\'t end lists with "and beyond" (e.g. "content, SEO, and beyond"). Name the actual things or cut the list.',
        'Avoid hedge-everything language. We have a POV and we use it. Definitive beats diplomatic.',
        "Don't open with rhetorical questions you immediately answer. Lead with the answer instead.",
        'Write with authority and confidence. Use definitive, strong statements. Back claims with data, stats, or logic.',
        "Talk like a real person. Write how you'd speak to a smart friend. Copy should pass the casual dinner party test.",
        'Never egg on AI anxiety or speak in doomsday terms. AirOps empowers and strengthens teams.',
        "Focus on the user's impact, not just what tools do. Frame the product as the vehicle for their success.",
        "Don't make it all about us. Our value is measured by their success.",
        "Don't make empty promises. Be confident but don't promise outcomes we can't deliver.",
        'Define acronyms on first use. Exception: universally recognized terms like API, AI.',
        "Respect the reader's time. Crisp language that gets the point across.",
        'Celebrate community progress and customer wins.',
        'Our brand enemies are AI slop, automated hacks, and quick wins. We champion lasting impact.',
        'When explaining complex subjects, use analogies and results-oriented language.',
        "We're not AI doomsday believers. We care about craft, quality, and the irreplaceable role of human touch.",
        "Never be patronizing. We empower, we don't belittle.",
        "Don't use jargon to sound smart. Use it only when it adds precision.",
        'Use sentence case for all non-H1 headings.',
    ],
)


@dataclass(frozen=True)
class BrandPrompt:
    """Immutable pairing of a brand kit and the prompt rendered from it."""

    kit: BrandKit
    prompt: str
    source: str

    @classmethod
    def from_kit(cls, kit: BrandKit, source: str) -> "BrandPrompt":
        return cls(kit=kit, prompt=build_system_prompt(kit), source=source)


class PromptCell:
    """Single-owner holder of the current ``BrandPrompt``.

    Writers build a complete snapshot and swap it in with one assignment;
    readers take one snapshot per request and never see a partial update.
    """

    def __init__(self, kit: BrandKit = STATIC_BRAND_KIT, source: str = SEED_SOURCE):
        self._current = BrandPrompt.from_kit(kit, source)

    def snapshot(self) -> BrandPrompt:
        return self._current

    @property
    def prompt(self) -> str:
        return self._current.prompt

    def replace(self, kit: BrandKit, source: str = LIVE_SOURCE) -> BrandPrompt:
        new = BrandPrompt.from_kit(kit, source)
        self._current = new
        return new


@asynccontextmanager
async def _http_client(client: Optional[httpx.AsyncClient], timeout: float) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout) as owned:
        yield owned


async def _request_brand_kit(settings: Settings, client: Optional[httpx.AsyncClient]) -> BrandKit:
    url = f"{settings.airops_api_base.rstrip('/')}/brand_kits/{settings.airops_brand_kit_id}"
    headers = {
        "Authorization": f"Bearer {settings.airops_api_key}",
        "Content-Type": "application/json",
    }
    log_external_call(logger, "AirOps", "get_brand_kit", brand_kit_id=settings.airops_brand_kit_id)
    async with _http_client(client, settings.airops_fetch_timeout) as http:
        try:
            response = await http.get(
                url,
                params={"include[]": "writing_rules"},
                headers=headers,
                timeout=settings.airops_fetch_timeout,
            )
        except httpx.TimeoutException:
            raise BrandKitFetchException("AirOps API request timed out")
        except httpx.HTTPError as e:
            raise BrandKitFetchException(f"Could not reach AirOps API: {e}")

    if response.status_code != 200:
        raise BrandKitFetchException(f"AirOps API returned {response.status_code}", status_code=response.status_code)

    try:
        data = response.json().get("data")
    except (ValueError, AttributeError):
        raise BrandKitFetchException("AirOps API returned a non-JSON body")
    if not isinstance(data, dict):
        raise BrandKitFetchException("AirOps API response has no brand kit data")

    try:
        kit = BrandKit.model_validate(data)
    except ValidationError as e:
        raise BrandKitFetchException(f"AirOps brand kit is malformed: {e.error_count()} errors")
    if not kit.writing_rules:
        raise BrandKitFetchException("AirOps brand kit has no writing rules")
    return kit


async def fetch_live_brand_kit(settings: Settings, client: Optional[httpx.AsyncClient] = None) -> Optional[BrandKit]:
    """Fetch the brand kit from the AirOps REST API, or ``None`` on any failure."""
    if not settings.airops_api_key:
        return None
    try:
        kit = await _request_brand_kit(settings, client)
    except BrandKitFetchException as e:
        logger.warning(
            f"{e.message}, using static brand kit",
            extra={"brand_kit_id": settings.airops_brand_kit_id, **e.details},
        )
        return None
    logger.info(f"Loaded live brand kit: {kit.brand_name}")
    return kit


async def refresh_brand_kit(cell: PromptCell, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> bool:
    """Swap a freshly fetched kit into ``cell``. Returns True when the kit changed."""
    kit = await fetch_live_brand_kit(settings, client)
    if kit is None:
        logger.info(f"Brand kit: static seed (brand kit ID {settings.airops_brand_kit_id})")
        return False
    cell.replace(kit, LIVE_SOURCE)
    logger.info("Brand kit: AirOps API (live)")
    return True
