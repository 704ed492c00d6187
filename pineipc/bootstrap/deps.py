import json
from functools import lru_cache

from pydantic import ValidationError

from pineipc.bootstrap.config.settings import PineSettings
from pineipc.core.client import PineClient


@lru_cache
def get_settings() -> PineSettings:
    try:
        return PineSettings()
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))


@lru_cache
def get_client() -> PineClient:
    return PineClient(get_settings().to_client_config())
