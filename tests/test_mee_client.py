from __future__ import annotations

import pytest
import requests

from app.domain.errors import ExecutionError, QuotingError, TransportError
from app.domain.execution_status import StepStatus
from defi.composer import compose_supertransaction
from mee.client import MeeClient
from mee.models import ExecutionHandle, QuoteType, SignedPlan
from tests.helpers import OWNER, make_response


@pytest.fixture
def client(session):
    return MeeClient(
        api_key="mee_key",
        quote_url="https://mee.test/v1/quote",
        execute_url="https://mee.test/v1/execute",
        explorer_url="https://explorer.test/v1/explorer/",
        session=session,
    )


@pytest.fixture
def request_(route, covered_fees):
    return compose_supertransaction(
        route=route,
        owner_address=OWNER,
        transfer_amount=10_000,
        min_destination_amount=10_000,
        deadline=1_700_001_320,
        fees=covered_fees,
    )


def test_quote_posts_payload_with_api_key(client, session, request_):
    session.post.return_value = make_response(
        200,
        {
            "quoteType": "permit",
            "payloadToSign": [{"signablePayload": {"domain": {}}}],
            "fee": {"amount": "1"},
        },
    )

    plan = client.get_quote(request_)

    assert plan.quoteType == QuoteType.PERMIT
    assert len(plan.payloadToSign) == 1
    args, kwargs = session.post.call_args
    assert args[0] == "https://mee.test/v1/quote"
    assert kwargs["headers"]["X-API-Key"] == "mee_key"
    assert kwargs["json"] == request_.to_payload()
    # unknown fields are preserved for the execute call
    assert plan.to_payload()["fee"] == {"amount": "1"}


def test_quote_error_envelope(client, session, request_):
    session.post.return_value = make_response(200, {"code": 400, "message": "Insufficient funds"})

    with pytest.raises(QuotingError) as exc:
        client.get_quote(request_)
    assert exc.value.code == 400
    assert "Insufficient funds" in str(exc.value)


def test_quote_http_error(client, session, request_):
    session.post.return_value = make_response(502, {"message": "bad gateway"})

    with pytest.raises(QuotingError) as exc:
        client.get_quote(request_)
    assert exc.value.code == 502


def test_quote_unknown_type_fails_loudly(client, session, request_):
    session.post.return_value = make_response(
        200, {"quoteType": "mpc", "payloadToSign": [{}]}
    )

    with pytest.raises(QuotingError):
        client.get_quote(request_)


def test_quote_network_failure(client, session, request_):
    session.post.side_effect = requests.Timeout("slow")

    with pytest.raises(TransportError):
        client.get_quote(request_)


def _signed_plan():
    return SignedPlan.model_validate(
        {"quoteType": "simple", "payloadToSign": [{"message": {"raw": "0x01"}, "signature": "0xsig"}]}
    )


def test_execute_returns_handle(client, session):
    session.post.return_value = make_response(200, {"supertxHash": "0xabc"})

    handle = client.execute(_signed_plan())

    assert handle == ExecutionHandle(supertxHash="0xabc")
    body = session.post.call_args.kwargs["json"]
    assert body["payloadToSign"][0]["signature"] == "0xsig"
    assert session.post.call_args.args[0] == "https://mee.test/v1/execute"


def test_execute_error_envelope(client, session):
    session.post.return_value = make_response(
        200, {"supertxHash": None, "code": 400, "message": "Signature invalid"}
    )

    with pytest.raises(ExecutionError) as exc:
        client.execute(_signed_plan())
    assert str(exc.value) == "Signature invalid"


def test_execute_without_hash(client, session):
    session.post.return_value = make_response(200, {})

    with pytest.raises(ExecutionError):
        client.execute(_signed_plan())


def test_status_parses_user_ops(client, session):
    session.get.return_value = make_response(
        200,
        {
            "userOps": [
                {"executionStatus": "MINED_SUCCESS", "executionData": "0x01"},
                {"executionStatus": "PENDING"},
                {"executionStatus": "IN_PROGRESS"},
            ]
        },
    )

    status = client.get_status(ExecutionHandle(supertxHash="0xabc"))

    assert session.get.call_args.args[0] == "https://explorer.test/v1/explorer/0xabc"
    assert [op.executionStatus for op in status.userOps] == [
        StepStatus.MINED_SUCCESS,
        StepStatus.PENDING,
        StepStatus.PENDING,
    ]
    assert status.is_finalized is False


def test_status_http_error(client, session):
    session.get.return_value = make_response(503, {"message": "unavailable"})

    with pytest.raises(TransportError):
        client.get_status(ExecutionHandle(supertxHash="0xabc"))


def test_status_without_user_ops_is_in_flight(client, session):
    session.get.return_value = make_response(200, {"userOps": None})

    status = client.get_status(ExecutionHandle(supertxHash="0xabc"))
    assert status.userOps == []
    assert status.is_finalized is False
