import asyncio
import unittest

from fastapi.testclient import TestClient

from api.routes import get_session
from api.websocket import cancel_ticker
from core.config import ChallengeConfig
from core.services import ChallengeSession
from main import app

from tests.pose_fixtures import standing_pose, with_elbow_angle


def landmarks_json(pose):
    return [{"x": lm.x, "y": lm.y, "z": lm.z, "visibility": lm.visibility} for lm in pose]


class TestRestApi(unittest.TestCase):
    """Test cases for the REST endpoints"""

    def setUp(self):
        self.session = ChallengeSession(config=ChallengeConfig(debounce_frames=1))
        app.dependency_overrides[get_session] = lambda: self.session
        self.client = TestClient(app)
        self.pose = landmarks_json(standing_pose())

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_health(self):
        response = self.client.get("/api/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy", "version": "1.0.0"})

    def test_compare_identical_poses(self):
        response = self.client.post("/api/pose/compare", json={
            "live": {"landmarks": self.pose},
            "reference": {"landmarks": self.pose},
        })

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["similarity"], 1.0)
        self.assertTrue(body["is_match"])
        self.assertEqual(body["threshold"], 0.8)
        self.assertEqual(len(body["joints"]), 8)

    def test_compare_with_custom_threshold(self):
        live = landmarks_json(with_elbow_angle(standing_pose(), 100.0))
        reference = landmarks_json(with_elbow_angle(standing_pose(), 160.0))

        response = self.client.post("/api/pose/compare", json={
            "live": {"landmarks": live},
            "reference": {"landmarks": reference},
            "threshold": 0.9,
        })

        body = response.json()
        self.assertAlmostEqual(body["similarity"], 1.0 - 7.5 / 45.0)
        self.assertFalse(body["is_match"])
        self.assertEqual(body["joints"][0]["joint"], "left_elbow")
        self.assertEqual(body["joints"][0]["indices"], [11, 13, 15])

    def test_compare_rejects_bad_landmark(self):
        response = self.client.post("/api/pose/compare", json={
            "live": {"landmarks": [{"x": 0.1, "y": 0.2, "visibility": 2.0}]},
            "reference": {"landmarks": self.pose},
        })

        self.assertEqual(response.status_code, 422)

    def test_get_challenge(self):
        body = self.client.get("/api/challenge").json()

        self.assertEqual(body["level"], 1)
        self.assertEqual(body["score"], 0)
        self.assertEqual(body["phase"], "idle")
        self.assertEqual(body["target_time"], 5.0)
        self.assertEqual(len(body["sequence"]), 4)
        self.assertFalse(body["sequence"][0]["has_reference_pose"])
        self.assertIsNone(body["notification"])

    def test_target_time(self):
        response = self.client.post("/api/challenge/target-time", json={"seconds": 10})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["target_time"], 10.0)

        response = self.client.post("/api/challenge/target-time", json={"seconds": 7})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.session.snapshot().target_time, 10.0)

    def test_navigation(self):
        body = self.client.post("/api/challenge/goto", json={"index": 3}).json()
        self.assertEqual(body["current_pose_index"], 3)

        body = self.client.post("/api/challenge/goto", json={"index": 99}).json()
        self.assertEqual(body["current_pose_index"], 3)

        body = self.client.post("/api/challenge/advance").json()
        self.assertEqual(body["level"], 2)
        self.assertEqual(body["current_pose_index"], 0)
        self.assertEqual(body["notification"]["kind"], "level_complete")

        body = self.client.post("/api/challenge/reset").json()
        self.assertEqual(body["level"], 2)
        self.assertEqual(body["score"], 0)

    def test_reference_pose(self):
        response = self.client.put("/api/challenge/reference/9", json={"landmarks": self.pose})
        self.assertEqual(response.status_code, 404)

        response = self.client.put("/api/challenge/reference/1", json={"landmarks": []})
        self.assertEqual(response.status_code, 422)

        response = self.client.put("/api/challenge/reference/1", json={"landmarks": self.pose})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["sequence"][1]["has_reference_pose"])

    def test_frame_hold_and_score(self):
        self.client.put("/api/challenge/reference/0", json={"landmarks": self.pose})

        body = self.client.post("/api/challenge/frame", json={"landmarks": self.pose}).json()
        self.assertTrue(body["is_pose_matched"])
        self.assertEqual(body["similarity"], 1.0)

        for _ in range(50):
            self.session.tick()

        body = self.client.get("/api/challenge").json()
        self.assertEqual(body["phase"], "complete")
        self.assertTrue(body["challenge_complete"])
        self.assertEqual(body["score"], 100)
        self.assertTrue(body["sequence"][0]["completed"])
        self.assertEqual(body["notification"]["message"], "Challenge Complete! +100 Points")
        self.assertGreater(body["notification"]["expires_in_ms"], 0)

    def test_empty_frame_keeps_match(self):
        self.client.put("/api/challenge/reference/0", json={"landmarks": self.pose})
        self.client.post("/api/challenge/frame", json={"landmarks": self.pose})

        body = self.client.post("/api/challenge/frame", json={"landmarks": []}).json()

        self.assertTrue(body["is_pose_matched"])


class TestWebSocket(unittest.TestCase):
    """Test cases for the WebSocket challenge stream"""

    def setUp(self):
        self.client = TestClient(app)

    def test_session_lifecycle(self):
        with self.client.websocket_connect("/ws/challenge") as ws:
            started = ws.receive_json()
            self.assertEqual(started["type"], "session_started")
            self.assertEqual(started["data"]["snapshot"]["current_pose_index"], 0)

            ws.send_json({"type": "command", "data": {"command": "goto", "index": 2}})
            reply = ws.receive_json()
            self.assertEqual(reply["type"], "snapshot")
            self.assertEqual(reply["data"]["current_pose_index"], 2)

            ws.send_json({"type": "reference", "data": {"pose_index": 2, "landmarks": landmarks_json(standing_pose())}})
            reply = ws.receive_json()
            self.assertEqual(reply["type"], "snapshot")
            self.assertTrue(reply["data"]["sequence"][2]["has_reference_pose"])

            ws.send_json({"type": "end_session"})
            ended = ws.receive_json()
            self.assertEqual(ended["type"], "session_ended")
            self.assertEqual(ended["data"]["snapshot"]["phase"], "idle")

    def test_errors_are_reported(self):
        with self.client.websocket_connect("/ws/challenge") as ws:
            ws.receive_json()

            ws.send_json({"type": "bogus"})
            self.assertEqual(ws.receive_json()["type"], "error")

            ws.send_json({"type": "command", "data": {"command": "target_time", "seconds": 7}})
            reply = ws.receive_json()
            self.assertEqual(reply["type"], "error")
            self.assertIn("7", reply["data"]["error"])

            ws.send_json({"type": "command", "data": {"command": "jump"}})
            self.assertEqual(ws.receive_json()["type"], "error")

            ws.send_json({"type": "command", "data": {"command": "target_time", "seconds": 15}})
            reply = ws.receive_json()
            self.assertEqual(reply["type"], "snapshot")
            self.assertEqual(reply["data"]["target_time"], 15.0)

            ws.send_json({"type": "end_session"})
            self.assertEqual(ws.receive_json()["type"], "session_ended")

    def test_malformed_payload_keeps_connection(self):
        with self.client.websocket_connect("/ws/challenge") as ws:
            ws.receive_json()

            ws.send_json({"type": "frame", "data": [1, 2]})
            self.assertEqual(ws.receive_json()["type"], "error")

            ws.send_json([1, 2])
            self.assertEqual(ws.receive_json()["type"], "error")

            ws.send_json({"type": "reference", "data": {"pose_index": "first", "landmarks": 3}})
            self.assertEqual(ws.receive_json()["type"], "error")

            ws.send_json({"type": "command", "data": {"command": "goto", "index": 1}})
            reply = ws.receive_json()
            self.assertEqual(reply["type"], "snapshot")
            self.assertEqual(reply["data"]["current_pose_index"], 1)

            ws.send_json({"type": "end_session"})
            self.assertEqual(ws.receive_json()["type"], "session_ended")


class TestShutdown(unittest.TestCase):
    """Test cases for hold timer task cleanup"""

    def test_lifespan_stops_shared_session(self):
        with TestClient(app) as client:
            self.assertEqual(client.get("/api/health").status_code, 200)
            self.assertTrue(get_session().active)

        self.assertFalse(get_session().active)

    def test_cancel_ticker_collects_failure(self):
        async def failing_ticker():
            raise RuntimeError("tick failed")

        async def run():
            task = asyncio.create_task(failing_ticker())
            await asyncio.sleep(0)
            await cancel_ticker(task)
            return task

        with self.assertLogs("api.websocket", level="ERROR") as logs:
            task = asyncio.run(run())

        self.assertTrue(task.done())
        self.assertIn("tick failed", logs.output[0])

    def test_cancel_ticker_on_running_task(self):
        async def run():
            task = asyncio.create_task(asyncio.sleep(10))
            await asyncio.sleep(0)
            await cancel_ticker(task)
            return task

        task = asyncio.run(run())

        self.assertTrue(task.cancelled())


if __name__ == "__main__":
    unittest.main()
