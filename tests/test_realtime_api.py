"""Tests for the /ws realtime transport."""

from fastapi.testclient import TestClient

from dine_match.api.app import create_app
from dine_match.containers import AppContainer


def _create_session(client: TestClient) -> dict:
    response = client.post(
        "/api/sessions", json={"location": {"lat": 40.7, "lng": -74.0}}
    )
    return response.json()


def test_connection_receives_handle(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        with client.websocket_connect("/ws") as websocket:
            message = websocket.receive_json()

    assert message["event"] == "connected"
    assert message["data"]["connectionHandle"]


def test_two_participants_join_swipe_and_match(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        session = _create_session(client)
        join = {
            "event": "join",
            "data": {"sessionId": session["sessionId"], "key": session["key"]},
        }
        with client.websocket_connect("/ws") as alice:
            alice.receive_json()
            alice.send_json(join)
            first = alice.receive_json()
            assert first["event"] == "session-updated"
            assert first["data"]["participantCount"] == 1
            assert first["data"]["status"] == "waiting"

            with client.websocket_connect("/ws") as bob:
                bob.receive_json()
                bob.send_json(join)
                assert alice.receive_json()["data"]["status"] == "active"
                assert bob.receive_json()["data"]["participantCount"] == 2

                swipe = {
                    "sessionId": session["sessionId"],
                    "candidateId": "c1",
                    "direction": "right",
                    "candidate": {"name": "Noodle Bar", "rating": 4.6},
                }
                alice.send_json({"event": "swipe", "data": swipe})
                relayed = bob.receive_json()
                assert relayed == {
                    "event": "peer-swiped",
                    "data": {"candidateId": "c1", "direction": "right"},
                }

                bob.send_json({"event": "swipe", "data": swipe})
                alice_events = [alice.receive_json(), alice.receive_json()]
                assert [event["event"] for event in alice_events] == [
                    "peer-swiped",
                    "match-found",
                ]
                match = bob.receive_json()
                assert match["event"] == "match-found"
                assert match["data"]["candidate"]["name"] == "Noodle Bar"


def test_wrong_key_reports_not_found(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        session = _create_session(client)
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_json()
            websocket.send_json(
                {
                    "event": "join",
                    "data": {"sessionId": session["sessionId"], "key": "WXYZ"},
                }
            )
            message = websocket.receive_json()

    assert message == {
        "event": "error",
        "data": {"kind": "not_found", "message": "Session not found"},
    }


def test_malformed_and_unknown_messages_are_rejected(
    container: AppContainer,
) -> None:
    with TestClient(create_app(container)) as client:
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_json()
            websocket.send_text("not json")
            malformed = websocket.receive_json()
            websocket.send_json({"event": "dance", "data": {}})
            unknown = websocket.receive_json()
            websocket.send_json({"event": "swipe", "data": {"candidateId": "c1"}})
            invalid_payload = websocket.receive_json()

    assert malformed["data"]["kind"] == "invalid_event"
    assert unknown["data"]["message"] == "Unknown event: dance"
    assert invalid_payload["data"]["message"] == "Malformed swipe payload"


def test_swipe_before_join_is_rejected(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        session = _create_session(client)
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_json()
            websocket.send_json(
                {
                    "event": "swipe",
                    "data": {
                        "sessionId": session["sessionId"],
                        "candidateId": "c1",
                        "direction": "left",
                    },
                }
            )
            message = websocket.receive_json()

    assert message["data"]["kind"] == "not_participant"

