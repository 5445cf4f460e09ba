"""Card id resolution from the page location, plus share links."""
from __future__ import annotations

import json
import logging
import random
import time
import uuid
from pathlib import Path
from typing import Callable, Optional, Protocol
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

from stampcard.config import runtime_config
from stampcard.config.runtime_config import CARD_QUERY_PARAM

logger = logging.getLogger(__name__)


def random_id() -> str:
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        # no OS randomness source; salt a PRNG string with wall-clock time
        return f"id-{random.getrandbits(52):x}-{int(time.time() * 1000)}"


def card_id_from_href(href: str) -> Optional[str]:
    values = parse_qs(urlsplit(href).query).get(CARD_QUERY_PARAM)
    return values[0] if values else None


def with_card_id(href: str, card_id: str) -> str:
    parts = urlsplit(href)
    params = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != CARD_QUERY_PARAM]
    params.append((CARD_QUERY_PARAM, card_id))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))


def share_link(href: str, card_id: str) -> str:
    parts = urlsplit(href)
    query = urlencode({CARD_QUERY_PARAM: card_id})
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", query, ""))


class PageLocation(Protocol):
    @property
    def href(self) -> str:
        ...

    def replace(self, href: str) -> None:
        ...


class InMemoryLocation:
    def __init__(self, href: str) -> None:
        self._href = href
        self.history_length = 1

    @property
    def href(self) -> str:
        return self._href

    def replace(self, href: str) -> None:
        # replace, not push: history_length stays put
        self._href = href


class FileBackedLocation:
    """Location whose rewritten href survives restarts (state directory)."""

    def __init__(self, default_href: Optional[str] = None, state_dir: Optional[Path] = None) -> None:
        self.path = (state_dir or runtime_config.get_state_dir()) / "location.json"
        self._default_href = default_href or runtime_config.get_page_url()

    @property
    def href(self) -> str:
        try:
            with open(self.path, "r") as f:
                return json.load(f).get("href") or self._default_href
        except FileNotFoundError:
            return self._default_href
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable location file %s: %s", self.path, exc)
            return self._default_href

    def replace(self, href: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump({"href": href}, f)


class CardLocator:
    def __init__(self, location: PageLocation, id_fn: Optional[Callable[[], str]] = None) -> None:
        self._location = location
        self._id_fn = id_fn or random_id

    def resolve(self) -> str:
        card_id = card_id_from_href(self._location.href)
        if card_id:
            return card_id
        card_id = self._id_fn()
        self._location.replace(with_card_id(self._location.href, card_id))
        logger.info("Minted card id %s", card_id)
        return card_id
