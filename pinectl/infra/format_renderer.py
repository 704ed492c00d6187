import json
from typing import Any

import yaml

from pinectl.core.ports.render import Renderer


class JsonRenderer(Renderer):
    def render(self, data: dict[str, Any]) -> str:
        return json.dumps(data, indent=2, sort_keys=False)


class YamlRenderer(Renderer):
    def render(self, data: dict[str, Any]) -> str:
        return yaml.safe_dump(self._normalize(data), sort_keys=False).rstrip("\n")

    def _normalize(self, obj):
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return bytes(obj).hex(" ")

        if isinstance(obj, dict):
            return {self._normalize(k): self._normalize(v) for k, v in obj.items()}

        if isinstance(obj, (list, tuple)):
            return [self._normalize(x) for x in obj]

        return obj
