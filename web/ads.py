"""Ad slot registry: publisher keys and the loader script served per slot.

Slots are held by an explicit registry object on app.state instead of being
hard-coded in the client. The served loader keeps the "already loaded"
check in the page itself (a DOM lookup on the slot key), so injecting the
same slot twice on one page is a no-op.
"""

import json
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_SLOT_NAME_RE = re.compile(r'^[a-z0-9][a-z0-9-]{0,63}$')
_SLOT_KEY_RE = re.compile(r'^[A-Za-z0-9]{8,64}$')
_HOST_RE = re.compile(r'^(?=.{1,253}$)[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)+$')

_LOADER_TEMPLATE = """\
(function () {{
  var key = {key};
  if (document.querySelector('script[src*="' + key + '"]')) {{
    return;
  }}
  window.atOptions = {options};
  var script = document.createElement("script");
  script.src = {src};
  script.async = true;
  (document.getElementById(key) || document.body).appendChild(script);
}})();
"""


@dataclass(frozen=True)
class AdSlot:
    name: str
    key: str
    format: str = "iframe"
    width: int = 300
    height: int = 250
    host: str = "exasperatebubblyorthodox.com"

    @property
    def script_url(self) -> str:
        return f"https://{self.host}/{self.key}/invoke.js"

    def options(self) -> dict:
        """The ``atOptions`` object the third-party invoke script reads."""
        return {
            "key": self.key,
            "format": self.format,
            "height": self.height,
            "width": self.width,
            "params": {},
        }

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "key": self.key,
            "format": self.format,
            "width": self.width,
            "height": self.height,
            "scriptUrl": self.script_url,
        }


class AdScriptRegistry:
    """Named ad slots, validated on registration."""

    def __init__(self, slots=()):
        self._slots: dict[str, AdSlot] = {}
        for slot in slots:
            self.register(slot)

    @classmethod
    def from_config(cls, slot_configs) -> "AdScriptRegistry":
        registry = cls()
        for cfg in slot_configs:
            try:
                registry.register(AdSlot(
                    name=cfg.name,
                    key=cfg.key,
                    format=cfg.format,
                    width=int(cfg.width),
                    height=int(cfg.height),
                    host=cfg.host,
                ))
            except ValueError as e:
                logger.warning("Skipping ad slot %r: %s", cfg.name, e)
        return registry

    def register(self, slot: AdSlot) -> None:
        if not _SLOT_NAME_RE.match(slot.name):
            raise ValueError(f"invalid slot name {slot.name!r}")
        if not _SLOT_KEY_RE.match(slot.key):
            raise ValueError(f"invalid publisher key {slot.key!r}")
        if not _HOST_RE.match(slot.host):
            raise ValueError(f"invalid script host {slot.host!r}")
        if slot.width <= 0 or slot.height <= 0:
            raise ValueError("width and height must be positive")
        if slot.name in self._slots:
            logger.warning("Ad slot %r registered twice, keeping the latest", slot.name)
        self._slots[slot.name] = slot

    def get(self, name: str) -> AdSlot | None:
        return self._slots.get(name)

    def list_slots(self) -> list[AdSlot]:
        return list(self._slots.values())

    def script_hosts(self) -> list[str]:
        return sorted({slot.host for slot in self._slots.values()})

    def render_loader(self, name: str) -> str | None:
        """JavaScript that sets atOptions and injects the invoke script once."""
        slot = self.get(name)
        if slot is None:
            return None
        return _LOADER_TEMPLATE.format(
            key=json.dumps(slot.key),
            options=json.dumps(slot.options()),
            src=json.dumps(slot.script_url),
        )
