"""
Tests for file plan application — per-item outcomes, aliases, broadcasts.
"""

import json

from pineforge.adapters.mock import MockGeneration, MockStorage
from pineforge.core.config.settings import PathAlias
from pineforge.core.models.files import FilePlanItem
from pineforge.core.models.response import Credential, GenerationResponse
from pineforge.core.services.broadcast import BroadcastHub
from pineforge.core.services.file_plan import FilePlanApplier, PathResolver


class RecordingSink:
    def __init__(self) -> None:
        self.frames: list[bytes] = []

    def write(self, frame: bytes) -> None:
        self.frames.append(frame)

    def events(self) -> list[tuple[str, dict]]:
        out = []
        for frame in self.frames:
            event_line, data_line = frame.decode().strip().split("\n")
            out.append((event_line[len("event: "):], json.loads(data_line[len("data: "):])))
        return out


def _item(path: str, action: str = "create", description: str = "") -> FilePlanItem:
    return FilePlanItem(path=path, action=action, description=description)


def _response(items: list[FilePlanItem], message: str = "Done.") -> GenerationResponse:
    return GenerationResponse(message=message, file_plan=items, thread_id="t1")


def _applier(storage, generation, **kw) -> FilePlanApplier:
    kw.setdefault("generation_timeout", 5.0)
    kw.setdefault("storage_timeout", 5.0)
    return FilePlanApplier(storage, generation, **kw)


class TestPathResolver:
    def test_default_alias(self):
        resolver = PathResolver([PathAlias(from_prefix="src/app/", to_prefix="app/")])
        assert resolver.candidates("src/app/page.tsx") == ["app/page.tsx"]

    def test_no_match(self):
        resolver = PathResolver([PathAlias(from_prefix="src/app/", to_prefix="app/")])
        assert resolver.candidates("lib/util.ts") == []

    def test_ordered_and_deduplicated(self):
        resolver = PathResolver([
            PathAlias(from_prefix="src/", to_prefix=""),
            PathAlias(from_prefix="src/app/", to_prefix="app/"),
            PathAlias(from_prefix="src/app/", to_prefix="pages/"),
        ])
        assert resolver.candidates("src/app/x.ts") == ["app/x.ts", "pages/x.ts"]

    def test_empty(self):
        assert PathResolver().candidates("src/app/x.ts") == []


class TestApplySkips:
    def test_no_project(self, storage: MockStorage, generation: MockGeneration, credential: Credential):
        resp = _response([_item("a.ts")])
        assert _applier(storage, generation).apply(resp, None, credential) is None
        assert resp.applied_files is None
        assert storage.call_count == 0

    def test_no_credential(self, storage: MockStorage, generation: MockGeneration):
        resp = _response([_item("a.ts")])
        assert _applier(storage, generation).apply(resp, "p1", None) is None
        assert storage.call_count == 0

    def test_empty_plan(self, storage: MockStorage, generation: MockGeneration, credential: Credential):
        resp = _response([])
        assert _applier(storage, generation).apply(resp, "p1", credential) is None
        assert resp.applied_files is None


class TestApplyOutcomes:
    def test_partial_failure_keeps_plan_order(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        storage.files[("p1", "old.ts")] = "old"
        generation.fail_on("b.ts")
        storage.fail_on("gone.ts")
        plan = [
            _item("a.ts"),
            _item("b.ts"),
            _item("gone.ts", "delete"),
            _item("old.ts", "delete"),
            _item("d.ts"),
        ]
        resp = _response(plan)

        outcomes = _applier(storage, generation).apply(resp, "p1", credential)

        assert [o.status for o in outcomes] == ["applied", "failed", "failed", "applied", "applied"]
        assert [o.item.path for o in outcomes] == ["a.ts", "b.ts", "gone.ts", "old.ts", "d.ts"]
        assert "generation failed" in outcomes[1].error
        assert "storage failed" in outcomes[2].error
        assert [(f.path, f.action) for f in resp.applied_files] == [
            ("a.ts", "create"),
            ("old.ts", "delete"),
            ("d.ts", "create"),
        ]
        assert ("p1", "old.ts") not in storage.files
        assert storage.files[("p1", "d.ts")] == "// generated d.ts\n"

    def test_delete_skips_generation(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        resp = _response([_item("x.ts", "delete")])
        _applier(storage, generation).apply(resp, "p1", credential)
        assert generation.calls("generate_file_content") == []

    def test_blank_content_is_skipped(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        generation.contents["empty.ts"] = "   \n"
        resp = _response([_item("empty.ts"), _item("ok.ts")])

        outcomes = _applier(storage, generation).apply(resp, "p1", credential)

        assert [o.status for o in outcomes] == ["skipped", "applied"]
        assert ("p1", "empty.ts") not in storage.files
        assert [f.path for f in resp.applied_files] == ["ok.ts"]

    def test_nothing_applied_gives_empty_list(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        generation.fail_on("a.ts")
        resp = _response([_item("a.ts")])
        _applier(storage, generation).apply(resp, "p1", credential)
        assert resp.applied_files == []


class TestUpdateResolution:
    def test_update_uses_existing_content(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        storage.files[("p1", "lib/a.ts")] = "export const a = 1;"
        resp = _response([_item("lib/a.ts", "update", "bump a")])

        _applier(storage, generation).apply(resp, "p1", credential)

        call = generation.calls("generate_file_content")[0]
        assert call.args["current_content"] == "export const a = 1;"
        assert call.args["description"] == "bump a"

    def test_update_falls_back_to_alias(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        storage.files[("p1", "app/page.tsx")] = "old page"
        generation.contents["app/page.tsx"] = "new page"
        resolver = PathResolver([PathAlias(from_prefix="src/app/", to_prefix="app/")])
        resp = _response([_item("src/app/page.tsx", "update")])

        outcomes = _applier(storage, generation, resolver=resolver).apply(resp, "p1", credential)

        assert outcomes[0].resolved_path == "app/page.tsx"
        assert resp.applied_files[0].path == "app/page.tsx"
        assert storage.files[("p1", "app/page.tsx")] == "new page"
        assert ("p1", "src/app/page.tsx") not in storage.files
        gen_call = generation.calls("generate_file_content")[0]
        assert gen_call.args["path"] == "app/page.tsx"
        assert gen_call.args["current_content"] == "old page"

    def test_update_of_missing_file_keeps_planned_path(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        resolver = PathResolver([PathAlias(from_prefix="src/app/", to_prefix="app/")])
        resp = _response([_item("src/app/new.tsx", "update")])

        outcomes = _applier(storage, generation, resolver=resolver).apply(resp, "p1", credential)

        assert outcomes[0].resolved_path == "src/app/new.tsx"
        assert generation.calls("generate_file_content")[0].args["current_content"] is None
        assert [c.args["path"] for c in storage.calls("get_file_content")] == [
            "src/app/new.tsx",
            "app/new.tsx",
        ]


class TestMessageCleanup:
    def test_code_fences_stripped_after_apply(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        message = "Updated the page.\n\n```tsx\nexport default 1;\n```\n\nEnjoy."
        resp = _response([_item("a.ts")], message=message)
        _applier(storage, generation).apply(resp, "p1", credential)
        assert resp.message == "Updated the page.\n\nEnjoy."

    def test_fences_kept_when_nothing_applied(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        generation.fail_on("a.ts")
        message = "Here:\n```\ncode\n```"
        resp = _response([_item("a.ts")], message=message)
        _applier(storage, generation).apply(resp, "p1", credential)
        assert resp.message == message

    def test_fences_kept_when_stripping_empties_message(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        message = "```tsx\nexport default 1;\n```"
        resp = _response([_item("a.ts")], message=message)
        _applier(storage, generation).apply(resp, "p1", credential)
        assert resp.message == message


class TestBroadcasts:
    def test_applied_items_are_broadcast(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential, hub: BroadcastHub,
    ):
        sink = RecordingSink()
        hub.register(sink)
        generation.fail_on("bad.ts")
        storage.files[("p1", "b.ts")] = "b"
        resp = _response([
            _item("a.ts"),
            _item("bad.ts"),
            _item("b.ts", "update"),
            _item("c.ts", "delete"),
        ])

        _applier(storage, generation, hub=hub).apply(resp, "p1", credential)

        assert sink.events() == [
            ("file:created", {"projectId": "p1", "path": "a.ts", "action": "create"}),
            ("file:updated", {"projectId": "p1", "path": "b.ts", "action": "update"}),
            ("file:deleted", {"projectId": "p1", "path": "c.ts", "action": "delete"}),
        ]

    def test_no_hub_is_fine(
        self, storage: MockStorage, generation: MockGeneration, credential: Credential,
    ):
        resp = _response([_item("a.ts")])
        outcomes = _applier(storage, generation, hub=None).apply(resp, "p1", credential)
        assert outcomes[0].applied
