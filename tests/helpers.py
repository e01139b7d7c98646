import json
from unittest.mock import MagicMock

OWNER = "0x1111111111111111111111111111111111111111"
ORCHESTRATOR = "0xC9540b320111bCBa149436533fc34Da9004b8bad"
ROUTER = "0x881e3A65B4d4a04dD529061dd0071cf975F58bCD"
SOURCE_USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
DEST_USDC = "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85"
OP_SELECTOR = 3734403246176062136


def make_response(status_code: int, body) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = body if isinstance(body, str) else json.dumps(body)
    if isinstance(body, str):
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = body
    return resp
