"""Tests for the expansion coordinator's fetch lifecycle.

Listing calls go through a manual executor so each test decides when (and in
which order) calls resolve; ``poll`` then applies completions on this thread.
"""

from __future__ import annotations

import unittest
from concurrent.futures import Executor, Future

from lazynav.errors import FetchFailure, FetchTimeout, PersistenceFailure, UnknownNodeError
from lazynav.expansion import ExpansionCoordinator, ExpansionEvent, MemoryExpandedNodeStore, source_nodes
from lazynav.sources.types import AppDescriptor, FilesystemEntry, ProjectDescriptor, SourceDescriptor
from lazynav.tree_model import TreeModel


class _ManualExecutor(Executor):
    def __init__(self) -> None:
        self.jobs: list[tuple[Future, object, tuple, dict]] = []

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        self.jobs.append((future, fn, args, kwargs))
        return future

    def run(self, index: int = 0) -> None:
        future, fn, args, kwargs = self.jobs.pop(index)
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    def run_all(self) -> None:
        while self.jobs:
            self.run(0)


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _FakeGateway:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.errors: dict[tuple, Exception] = {}
        self.roots: list[str] = []
        self.folders: dict[str, list[FilesystemEntry]] = {}
        self.projects: dict[str, list[object]] = {}
        self.apps: dict[tuple[str, str, str], list[AppDescriptor]] = {}

    def _serve(self, key: tuple, value):
        self.calls.append(key)
        error = self.errors.get(key)
        if error is not None:
            raise error
        return value

    def list_local_root(self):
        return self._serve(("root",), list(self.roots))

    def list_local_folder(self, path):
        return self._serve(("folder", path), list(self.folders.get(path, [])))

    def list_platform_sources(self):
        return self._serve(("sources",), [])

    def list_platform_projects(self, source_id):
        return self._serve(("projects", source_id), list(self.projects.get(source_id, [])))

    def list_project_apps(self, source_id, owner, slug):
        return self._serve(("apps", source_id, owner, slug), list(self.apps.get((source_id, owner, slug), [])))


class _BrokenStore(MemoryExpandedNodeStore):
    def update_expanded_set(self, mutator) -> None:
        raise PersistenceFailure(OSError("read-only"))


class ExpansionCoordinatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.gateway = _FakeGateway()
        self.executor = _ManualExecutor()
        self.clock = _FakeClock()
        self.failures: list = []
        self.store = MemoryExpandedNodeStore()
        self.model = TreeModel()

    def _coordinator(self, snapshot: frozenset[str] = frozenset()) -> ExpansionCoordinator:
        self.model.initialize(source_nodes([SourceDescriptor(id="sbg", label="Platform")], snapshot))
        return ExpansionCoordinator(
            self.model,
            self.gateway,
            self.store,
            expanded_snapshot=snapshot,
            notify=self.failures.append,
            fetch_timeout_seconds=10.0,
            clock=self.clock,
            executor=self.executor,
        )

    def test_expand_marks_loading_persists_and_writes_children(self) -> None:
        coordinator = self._coordinator()
        self.gateway.roots = ["/work", "/data"]

        coordinator.expand("local")

        node = self.model.find("local")
        self.assertTrue(node.is_expanded)
        self.assertTrue(node.loading)
        self.assertEqual(self.store.ordered_ids(), ["local"])

        self.executor.run_all()
        self.assertTrue(coordinator.poll())

        node = self.model.find("local")
        self.assertFalse(node.loading)
        self.assertEqual([child.id for child in self.model.children("local")], ["local/%2Fwork", "local/%2Fdata"])
        self.assertTrue(coordinator.is_idle())
        self.assertEqual(self.failures, [])

    def test_collapse_while_loading_discards_response(self) -> None:
        coordinator = self._coordinator()
        self.gateway.roots = ["/work"]

        coordinator.expand("local")
        coordinator.collapse("local")
        self.executor.run_all()
        coordinator.poll()

        node = self.model.find("local")
        self.assertFalse(node.is_expanded)
        self.assertFalse(node.loading)
        self.assertIsNone(self.model.children("local"))
        self.assertEqual(self.store.ordered_ids(), [])

    def test_repeated_expand_while_loading_issues_one_listing_call(self) -> None:
        coordinator = self._coordinator()
        self.gateway.roots = ["/work"]

        coordinator.expand("local")
        coordinator.collapse("local")
        coordinator.handle(ExpansionEvent(node_id="local", expanded=True))

        self.assertEqual(len(self.executor.jobs), 1)
        self.executor.run_all()
        coordinator.poll()

        self.assertEqual(self.gateway.calls, [("root",)])
        self.assertEqual([child.id for child in self.model.children("local")], ["local/%2Fwork"])
        self.assertTrue(self.model.find("local").is_expanded)

    def test_failed_listing_keeps_previous_children_and_reports(self) -> None:
        coordinator = self._coordinator()
        self.gateway.roots = ["/work"]
        coordinator.expand("local")
        self.executor.run_all()
        coordinator.poll()
        coordinator.collapse("local")

        self.gateway.errors[("root",)] = OSError("denied")
        coordinator.expand("local")
        self.executor.run_all()
        coordinator.poll()

        node = self.model.find("local")
        self.assertFalse(node.loading)
        self.assertFalse(node.is_expanded)
        self.assertEqual(node.error, "denied")
        self.assertEqual([child.id for child in self.model.children("local")], ["local/%2Fwork"])
        self.assertEqual(len(self.failures), 1)
        self.assertIsInstance(self.failures[0], FetchFailure)
        self.assertEqual(self.failures[0].node_id, "local")
        self.assertEqual(self.store.ordered_ids(), ["local"])

    def test_retry_after_failure_clears_error(self) -> None:
        coordinator = self._coordinator()
        self.gateway.errors[("root",)] = OSError("denied")
        coordinator.expand("local")
        self.executor.run_all()
        coordinator.poll()

        del self.gateway.errors[("root",)]
        self.gateway.roots = ["/work"]
        coordinator.toggle("local")
        self.assertIsNone(self.model.find("local").error)
        self.executor.run_all()
        coordinator.poll()

        self.assertTrue(self.model.find("local").is_expanded)
        self.assertEqual([child.id for child in self.model.children("local")], ["local/%2Fwork"])

    def test_overdue_listing_times_out_and_late_response_is_ignored(self) -> None:
        coordinator = self._coordinator()
        self.gateway.roots = ["/work"]
        coordinator.expand("local")

        self.clock.advance(10.5)
        self.assertTrue(coordinator.poll())

        node = self.model.find("local")
        self.assertFalse(node.loading)
        self.assertFalse(node.is_expanded)
        self.assertIn("no response", node.error)
        self.assertIsInstance(self.failures[0], FetchTimeout)

        self.executor.run_all()
        self.assertFalse(coordinator.poll())
        self.assertIsNone(self.model.children("local"))
        self.assertEqual(self.gateway.calls, [])

    def test_disjoint_nodes_are_written_in_completion_order(self) -> None:
        coordinator = self._coordinator()
        self.gateway.roots = ["/work"]
        self.gateway.projects["sbg"] = [ProjectDescriptor(name="Demo", owner="alice", slug="demo")]

        coordinator.expand("local")
        coordinator.expand("sbg")

        self.executor.run(1)
        coordinator.poll()
        self.assertEqual([child.id for child in self.model.children("sbg")], ["sbg/alice/demo"])
        self.assertTrue(self.model.find("local").loading)

        self.executor.run(0)
        coordinator.poll()
        self.assertEqual([child.id for child in self.model.children("local")], ["local/%2Fwork"])
        self.assertEqual(self.gateway.calls, [("projects", "sbg"), ("root",)])

    def test_project_expansion_lists_apps_with_source_and_slug(self) -> None:
        coordinator = self._coordinator()
        self.gateway.projects["sbg"] = [ProjectDescriptor(name="Demo", owner="alice", slug="demo")]
        self.gateway.apps[("sbg", "alice", "demo")] = [AppDescriptor(id="bwa", label="BWA")]

        coordinator.expand("sbg")
        self.executor.run_all()
        coordinator.poll()
        coordinator.expand("sbg/alice/demo")
        self.executor.run_all()
        coordinator.poll()

        self.assertEqual(self.gateway.calls[-1], ("apps", "sbg", "alice", "demo"))
        self.assertEqual([child.label for child in self.model.children("sbg/alice/demo")], ["BWA"])

    def test_snapshot_expanded_nodes_are_restored_without_store_writes(self) -> None:
        coordinator = self._coordinator(frozenset({"local", "local/%2Fwork"}))
        self.gateway.roots = ["/work", "/data"]
        self.gateway.folders["/work"] = [FilesystemEntry(path="/work/main.cwl", is_dir=False)]

        coordinator.restore_expanded(self.model.roots())
        self.executor.run_all()
        coordinator.poll()

        work = self.model.find("local/%2Fwork")
        self.assertTrue(work.is_expanded)
        self.assertFalse(self.model.find("local/%2Fdata").is_expanded)

        self.executor.run_all()
        coordinator.poll()

        self.assertEqual([child.id for child in self.model.children("local/%2Fwork")], ["local/%2Fwork/main.cwl"])
        self.assertEqual(self.gateway.calls, [("root",), ("folder", "/work")])
        self.assertEqual(self.store.ordered_ids(), [])

    def test_repeated_listing_entries_collapse_to_one_child(self) -> None:
        coordinator = self._coordinator()
        self.gateway.roots = ["/work", "/work"]

        coordinator.expand("local")
        self.executor.run_all()
        coordinator.poll()

        self.assertEqual([child.id for child in self.model.children("local")], ["local/%2Fwork"])
        self.assertEqual(len(set(self.model.node_ids())), len(self.model))

    def test_nested_local_roots_keep_distinct_ids(self) -> None:
        coordinator = self._coordinator()
        self.gateway.roots = ["/work", "/work/sub"]
        self.gateway.folders["/work"] = [FilesystemEntry(path="/work/sub", is_dir=True)]

        coordinator.expand("local")
        self.executor.run_all()
        coordinator.poll()
        coordinator.expand("local/%2Fwork")
        self.executor.run_all()
        coordinator.poll()

        self.assertEqual(self.failures, [])
        self.assertEqual([child.id for child in self.model.children("local")], ["local/%2Fwork", "local/%2Fwork%2Fsub"])
        self.assertEqual([child.id for child in self.model.children("local/%2Fwork")], ["local/%2Fwork/sub"])
        self.assertEqual(len(set(self.model.node_ids())), len(self.model))

    def test_malformed_listing_is_reported_as_fetch_failure(self) -> None:
        coordinator = self._coordinator()
        self.gateway.projects["sbg"] = ["not-a-project"]

        coordinator.expand("sbg")
        self.executor.run_all()
        coordinator.poll()

        self.assertIsInstance(self.failures[0], FetchFailure)
        self.assertIsInstance(self.failures[0].cause, TypeError)
        self.assertFalse(self.model.find("sbg").loading)

    def test_persistence_failure_is_reported_and_fetch_still_runs(self) -> None:
        self.store = _BrokenStore()
        coordinator = self._coordinator()
        self.gateway.roots = ["/work"]

        coordinator.expand("local")
        self.executor.run_all()
        coordinator.poll()

        self.assertIsInstance(self.failures[0], PersistenceFailure)
        self.assertEqual([child.id for child in self.model.children("local")], ["local/%2Fwork"])

    def test_intents_on_unknown_nodes_raise(self) -> None:
        coordinator = self._coordinator()
        with self.assertRaises(UnknownNodeError):
            coordinator.expand("nope")
        with self.assertRaises(UnknownNodeError):
            coordinator.toggle("nope")

    def test_expand_on_leaf_is_ignored(self) -> None:
        coordinator = self._coordinator()
        self.gateway.roots = ["/work"]
        self.gateway.folders["/work"] = [FilesystemEntry(path="/work/a.txt", is_dir=False)]
        coordinator.expand("local")
        self.executor.run_all()
        coordinator.poll()
        coordinator.expand("local/%2Fwork")
        self.executor.run_all()
        coordinator.poll()

        coordinator.expand("local/%2Fwork/a.txt")

        self.assertEqual(self.executor.jobs, [])
        self.assertFalse(self.model.find("local/%2Fwork/a.txt").is_expanded)
        self.assertNotIn("local/%2Fwork/a.txt", self.store.get_expanded_ids())


if __name__ == "__main__":
    unittest.main()
