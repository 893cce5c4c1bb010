"""
Change Notifier
Synchronous publish/subscribe channels for addon and catalog changes
"""
import itertools
import logging
from typing import Callable, Dict

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Subscription:
    """Handle returned by Channel.subscribe"""

    def __init__(self, channel: "Channel", token: int):
        self.channel = channel
        self.token = token

    @property
    def active(self) -> bool:
        return self.channel.is_subscribed(self)

    def unsubscribe(self):
        """Stop receiving notifications (safe to call twice)"""
        self.channel.unsubscribe(self)


class Channel:
    """One event kind with its own ordered listener list"""

    def __init__(self, name: str):
        self.name = name
        self._listeners: Dict[int, Listener] = {}
        self._tokens = itertools.count(1)

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> Subscription:
        token = next(self._tokens)
        self._listeners[token] = listener
        return Subscription(self, token)

    def unsubscribe(self, subscription: Subscription):
        if subscription.channel is self:
            self._listeners.pop(subscription.token, None)

    def is_subscribed(self, subscription: Subscription) -> bool:
        return subscription.channel is self and subscription.token in self._listeners

    def publish(self):
        """
        Invoke every listener in subscription order

        A failing listener is logged and skipped so the rest still run.
        """
        # Snapshot so listeners may unsubscribe while being notified
        for token, listener in list(self._listeners.items()):
            try:
                listener()
            except Exception as e:
                logger.error(f"Listener {token} on '{self.name}' failed: {e}", exc_info=True)


class ChangeNotifier:
    """Addon-changed and catalog-preferences-changed channels"""

    def __init__(self):
        self.addons_changed = Channel("addons_changed")
        self.catalog_prefs_changed = Channel("catalog_prefs_changed")

    def on_addons_changed(self, listener: Listener) -> Subscription:
        return self.addons_changed.subscribe(listener)

    def on_catalog_prefs_changed(self, listener: Listener) -> Subscription:
        return self.catalog_prefs_changed.subscribe(listener)
