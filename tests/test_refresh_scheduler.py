import asyncio
import unittest
from typing import List

from exocore_console.services.refresh_scheduler import STATE_IDLE, STATE_POLLING, RefreshScheduler


class TestRefreshScheduler(unittest.IsolatedAsyncioTestCase):
    async def test_start_then_stop_leaves_no_pending_ticks(self):
        published: List[int] = []
        counter = {"n": 0}

        async def fetch():
            counter["n"] += 1
            return counter["n"]

        sched = RefreshScheduler(fetch_fn=fetch, publish_fn=published.append, interval_sec=0.01)
        self.assertEqual(sched.state, STATE_IDLE)
        await sched.start()
        self.assertEqual(sched.state, STATE_POLLING)
        self.assertEqual(sched.pending_ticks, 1)
        await asyncio.sleep(0.05)
        await sched.stop()
        self.assertEqual(sched.state, STATE_IDLE)
        self.assertEqual(sched.pending_ticks, 0)
        seen = len(published)
        self.assertGreaterEqual(seen, 1)
        await asyncio.sleep(0.05)
        # No orphaned timer keeps firing after stop().
        self.assertEqual(len(published), seen)

    async def test_double_start_keeps_one_timer(self):
        async def fetch():
            return 1

        sched = RefreshScheduler(fetch_fn=fetch, publish_fn=lambda _: None, interval_sec=0.01)
        first = await sched.start()
        second = await sched.start()
        self.assertIs(first, second)
        self.assertEqual(sched.pending_ticks, 1)
        await sched.stop()
        self.assertTrue(first.done())

    async def test_stop_when_idle_is_noop(self):
        async def fetch():
            return 1

        sched = RefreshScheduler(fetch_fn=fetch, publish_fn=lambda _: None, interval_sec=0.01)
        await sched.stop()
        self.assertEqual(sched.state, STATE_IDLE)

    async def test_failed_tick_does_not_stop_loop(self):
        calls = {"n": 0}
        published: List[int] = []

        async def fetch():
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("host hiccup")
            return calls["n"]

        sched = RefreshScheduler(fetch_fn=fetch, publish_fn=published.append, interval_sec=0.01)
        with self.assertLogs("exocore_console.services.refresh_scheduler", level="ERROR"):
            await sched.start()
            await asyncio.sleep(0.08)
        await sched.stop()
        self.assertGreaterEqual(sched.failures, 1)
        self.assertGreaterEqual(len(published), 1)
        self.assertEqual(published[0], 2)

    async def test_results_published_in_issuance_order(self):
        counter = {"n": 0}
        published: List[int] = []

        async def fetch():
            counter["n"] += 1
            value = counter["n"]
            # Earlier fetches are slower; order must still hold.
            await asyncio.sleep(0.02 if value % 2 else 0.0)
            return value

        sched = RefreshScheduler(fetch_fn=fetch, publish_fn=published.append, interval_sec=0.005)
        await sched.start()
        await asyncio.sleep(0.15)
        await sched.stop()
        self.assertEqual(published, sorted(published))

    async def test_tick_once_reports_outcome(self):
        async def ok():
            return "ok"

        published: List[str] = []
        sched = RefreshScheduler(fetch_fn=ok, publish_fn=published.append)
        self.assertTrue(await sched.tick_once())
        self.assertEqual(published, ["ok"])
        self.assertEqual(sched.ticks, 1)


if __name__ == "__main__":
    unittest.main()
