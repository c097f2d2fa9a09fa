from __future__ import annotations

import json
import socketserver
import threading
import time
from typing import Any, Callable, Dict, List

import pytest

from src.core.errors import BuildError, RpcError, ShieldedSyncError, SubmissionTimeout
from src.integration.bridge_client import BridgeConfig, BridgeSdk, BridgeTransport, bridge_sdk
from src.integration.sdk import Tx, TxArgs


class _FakeBridge(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, routes: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]]) -> None:
        super().__init__(("127.0.0.1", 0), _Handler)
        self.routes = routes
        self.seen: List[Dict[str, Any]] = []


class _Handler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        request = json.loads(self.rfile.readline())
        self.server.seen.append(request)
        route = self.server.routes.get(request["method"])
        if route is None:
            body = {"error": {"kind": "unknown-method", "message": request["method"]}}
        else:
            body = route(request["params"])
        body.setdefault("id", request["id"])
        self.wfile.write(json.dumps(body).encode("utf-8") + b"\n")


@pytest.fixture
def bridge():
    servers = []

    def start(routes):
        server = _FakeBridge(routes)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


def _sdk(server, **kwargs) -> BridgeSdk:
    host, port = server.server_address
    return BridgeSdk(BridgeConfig(host=host, port=port, **kwargs))


def test_from_url() -> None:
    cfg = BridgeConfig.from_url("tcp://localhost:4000")
    assert (cfg.host, cfg.port) == ("localhost", 4000)
    assert BridgeConfig.from_url("10.0.0.1:26660").port == 26660
    with pytest.raises(ValueError):
        BridgeConfig.from_url("http://localhost:4000")
    with pytest.raises(ValueError):
        BridgeConfig.from_url("localhost")


def test_transport_rejects_bad_config() -> None:
    with pytest.raises(ValueError):
        BridgeTransport(BridgeConfig(port=70000))
    with pytest.raises(ValueError):
        BridgeTransport(BridgeConfig(timeout_s=0))


def test_queries_round_trip(bridge) -> None:
    server = bridge(
        {
            "query_epoch": lambda p: {"result": 12},
            "token_balance": lambda p: {"result": "1500" if p["owner"] == "tnam1a" else "0"},
            "query_all_validators": lambda p: {
                "result": [{"address": "tnam1v0", "state": "consensus"}, {"address": "tnam1v1", "state": "jailed"}]
            },
            "query_proposal_by_id": lambda p: {"result": None},
            "wallet.find_address": lambda p: {"result": "tnam1" + p["alias"]},
        }
    )
    sdk = _sdk(server)
    assert sdk.query_epoch() == 12
    assert sdk.token_balance("tnam1nam", "tnam1a") == 1500
    assert [v.state for v in sdk.query_all_validators()] == ["consensus", "jailed"]
    assert sdk.query_proposal_by_id(3) is None
    assert sdk.wallet.find_address("bob") == "tnam1bob"
    ids = [r["id"] for r in server.seen]
    assert ids == sorted(ids) and len(set(ids)) == len(ids)
    assert server.seen[1]["params"] == {"token": "tnam1nam", "owner": "tnam1a"}


@pytest.mark.parametrize(
    "kind, exc",
    [("build", BuildError), ("shielded-sync", ShieldedSyncError), ("internal", RpcError)],
)
def test_error_kinds(bridge, kind, exc) -> None:
    server = bridge({"shielded_sync": lambda p: {"error": {"kind": kind, "message": "boom"}}})
    with pytest.raises(exc, match="boom"):
        _sdk(server).shielded_sync()


def test_mismatched_response_id(bridge) -> None:
    server = bridge({"query_block": lambda p: {"id": -1, "result": 5}})
    with pytest.raises(RpcError, match="does not match"):
        _sdk(server).query_block()


def test_unreachable_bridge() -> None:
    with pytest.raises(RpcError):
        BridgeSdk(BridgeConfig(host="127.0.0.1", port=1, timeout_s=0.5)).query_epoch()


def test_build_sign_submit(bridge) -> None:
    server = bridge(
        {
            "build": lambda p: {"result": "h1"},
            "sign": lambda p: {"result": None},
            "submit": lambda p: {"result": {"applied": True, "height": 9, "tx_hash": "ab"}},
        }
    )
    sdk = _sdk(server)
    tx = sdk.build("bond", {"amount": 5}, TxArgs(signers=("a",), gas_payer="a"))
    assert tx.handle == "h1"
    response = sdk.submit(sdk.sign(tx))
    assert response.applied and response.height == 9
    assert server.seen[-1]["params"] == {"handle": "h1"}


def test_slow_submit_is_a_submission_timeout(bridge) -> None:
    def slow(params):
        time.sleep(1.0)
        return {"result": {"applied": True}}

    server = bridge({"submit": slow})
    sdk = _sdk(server, submit_timeout_s=0.1)
    with pytest.raises(SubmissionTimeout):
        sdk.submit(Tx(kind="bond", args={}, tx_args=TxArgs(signers=("a",), gas_payer="a"), handle="h"))


def test_bridge_sdk_checks_chain_and_imports_faucet(bridge) -> None:
    server = bridge(
        {
            "chain_id": lambda p: {"result": "local.abc"},
            "wallet.import_faucet": lambda p: {"result": None},
        }
    )
    host, port = server.server_address
    with bridge_sdk(f"tcp://{host}:{port}", chain_id="local.abc", faucet_sk="00ff") as sdk:
        assert isinstance(sdk, BridgeSdk)
    assert server.seen[-1]["params"] == {"secret_key": "00ff"}

    with pytest.raises(RpcError, match="local.abc"):
        with bridge_sdk(f"{host}:{port}", chain_id="other"):
            pass
