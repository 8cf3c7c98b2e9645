# share/share.py
"""
Sharing a capture, as an ordered list of strategies.

    1. native share sheet with the image attached
    2. messaging-app link with a text message   (only when 1 is unavailable)
    3. social-app landing page                  (when a previous step failed)

Cancelling the share sheet is a normal outcome and stops the chain.
"""
import logging
import webbrowser
from dataclasses import dataclass
from enum import Enum
from typing import Tuple
from urllib.parse import quote

from jewel_tryon.errors import ShareCancelled, ShareUnavailable
from jewel_tryon.utils.config import ShareConfig

logger = logging.getLogger(__name__)


class ShareOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"


FINAL_OUTCOMES = (ShareOutcome.SUCCEEDED, ShareOutcome.CANCELLED)


@dataclass(frozen=True)
class ShareRequest:
    title: str
    text: str
    files: Tuple[Tuple[str, str, bytes], ...] = ()  # (filename, mime type, data)


@dataclass(frozen=True)
class ShareReport:
    outcome: ShareOutcome
    channel: str

    @property
    def ok(self):
        return self.outcome in FINAL_OUTCOMES


class ShareStrategy:
    name = "strategy"
    # Outcomes of the previous attempt that let this strategy run
    runs_after = frozenset()

    def attempt(self, result, product_name):
        raise NotImplementedError


class NativeShareStrategy(ShareStrategy):
    """
    Platform share sheet. `share_sheet` takes a ShareRequest and raises
    ShareCancelled when the user dismisses it, ShareUnavailable when there
    is no share sheet; anything else it raises counts as a failure.
    """
    name = "native"

    def __init__(self, share_sheet=None, config=None):
        self.share_sheet = share_sheet
        self.config = config or ShareConfig()

    def build_request(self, result, product_name):
        brand = self.config.brand
        return ShareRequest(
            title=f"My {product_name} try-on - {brand}",
            text=f"Check out how this looks on me! Try it yourself at {brand}.",
            files=(("ar-tryon.png", "image/png", result.png),),
        )

    def attempt(self, result, product_name):
        if self.share_sheet is None:
            return ShareOutcome.UNAVAILABLE
        try:
            self.share_sheet(self.build_request(result, product_name))
        except ShareCancelled:
            return ShareOutcome.CANCELLED
        except ShareUnavailable:
            return ShareOutcome.UNAVAILABLE
        except Exception as e:
            logger.warning("Native share failed: %s", e)
            return ShareOutcome.FAILED
        return ShareOutcome.SUCCEEDED


class LinkStrategy(ShareStrategy):
    def __init__(self, opener=webbrowser.open):
        self.opener = opener

    def url(self, product_name):
        raise NotImplementedError

    def attempt(self, result, product_name):
        url = self.url(product_name)
        try:
            opened = self.opener(url)
        except webbrowser.Error as e:
            logger.warning("Could not open %s: %s", url, e)
            return ShareOutcome.FAILED
        return ShareOutcome.FAILED if opened is False else ShareOutcome.SUCCEEDED


class MessagingLinkStrategy(LinkStrategy):
    """Text-only deep link, the channel does not take file attachments."""
    name = "messaging"
    runs_after = frozenset({ShareOutcome.UNAVAILABLE})

    def __init__(self, config=None, opener=webbrowser.open):
        super().__init__(opener)
        self.config = config or ShareConfig()

    def url(self, product_name):
        text = f"Check out my {product_name} try-on! {self.config.page_url}".strip()
        return self.config.messaging_url.format(text=quote(text, safe=""))


class SocialLinkStrategy(LinkStrategy):
    """Landing page only, the user attaches the image themselves."""
    name = "social"
    runs_after = frozenset({ShareOutcome.FAILED})

    def __init__(self, config=None, opener=webbrowser.open):
        super().__init__(opener)
        self.config = config or ShareConfig()

    def url(self, product_name):
        return self.config.social_url


class ShareChain:
    def __init__(self, strategies):
        self.strategies = list(strategies)

    def share(self, result, product_name):
        last = None
        for strategy in self.strategies:
            if last is not None and last.outcome not in strategy.runs_after:
                continue
            outcome = strategy.attempt(result, product_name)
            last = ShareReport(outcome, strategy.name)
            logger.info("Share via %s: %s", strategy.name, outcome.value)
            if outcome in FINAL_OUTCOMES:
                break
        return last or ShareReport(ShareOutcome.UNAVAILABLE, "none")


def default_share_chain(config=None, share_sheet=None, opener=webbrowser.open):
    config = config or ShareConfig()
    return ShareChain([
        NativeShareStrategy(share_sheet, config),
        MessagingLinkStrategy(config, opener),
        SocialLinkStrategy(config, opener),
    ])


def share(result, product_name, chain=None):
    """Shares a capture and returns what happened (succeeded / cancelled / failed / unavailable)."""
    chain = chain or default_share_chain()
    return chain.share(result, product_name)
