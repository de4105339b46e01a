"""Tests for the backend request handler."""

from __future__ import annotations

import base64

from liveedit.errors import LiveEditError
from liveedit.events import StylesPatched
from liveedit.server import DesignModeHandler

TITLE = '#hero-title[data-liveedit-id="el-1-abc123"]'
IMAGE = '#hero-image[data-liveedit-id="el-2-def456"]'


def _style(changes, **extra) -> dict:
    data = {
        "type": "style_update",
        "selector": TITLE,
        "changes": [{"property": p, "oldValue": old, "newValue": new} for p, old, new in changes],
        "filePath": "src/App.tsx",
        "sourceLocation": {"filePath": "src/App.tsx", "lineNumber": 5, "columnNumber": 7},
        "textContent": "Welcome home",
    }
    data.update(extra)
    return data


def _chunks(data: bytes, context: dict, *, upload_id="abcdef123456", file_name="hero.png", size=8, **extra):
    encoded = base64.b64encode(data).decode()
    pieces = [encoded[i : i + size] for i in range(0, len(encoded), size)]
    return [
        {
            "type": "image_upload",
            "uploadId": upload_id,
            "chunk": piece,
            "chunkIndex": index,
            "totalChunks": len(pieces),
            "fileName": file_name,
            "mimeType": "image/png",
            "fileSize": len(data),
            "elementContext": context,
            **extra,
        }
        for index, piece in enumerate(pieces)
    ]


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------


class TestStyleUpdate:
    def test_apply(self, handler, files):
        [response] = handler.handle(_style([("fontWeight", "400", "700")], entryId="e1"))
        assert response["type"] == "style_updated"
        assert response["success"] is True
        assert response["applied"] == ["fontWeight: font-bold"]
        assert response["filePath"] == "src/App.tsx"
        assert response["entryId"] == "e1"
        assert 'className="text-2xl text-gray-900 font-bold"' in files.files["src/App.tsx"]
        assert files.commits == [("src/App.tsx", f"design mode: update styles for {TITLE}")]
        assert "e1" in handler.journal

    def test_undo_and_redo_are_exact(self, handler, files):
        original = files.files["src/App.tsx"]
        handler.handle(_style([("fontWeight", "400", "700")], entryId="e1"))
        applied = files.files["src/App.tsx"]

        [undo] = handler.handle(_style([("fontWeight", "700", "400")], entryId="e1", direction="undo"))
        assert undo["success"] is True
        assert files.files["src/App.tsx"] == original
        assert files.commits[-1][1] == f"design mode: undo style change for {TITLE}"

        handler.handle(_style([("fontWeight", "400", "700")], entryId="e1", direction="redo"))
        assert files.files["src/App.tsx"] == applied

    def test_unknown_entry_falls_back_to_conversion(self, handler, files):
        [response] = handler.handle(_style([("fontWeight", "700", "400")], entryId="gone", direction="undo"))
        assert response["success"] is True
        assert "font-normal" in files.files["src/App.tsx"]

    def test_partial_batch(self, handler, files):
        [response] = handler.handle(
            _style([("color", "", "#ef4444"), ("boxShadow", "", "0 0 2px red")])
        )
        assert response["success"] is True
        assert len(response["applied"]) == 1
        assert response["applied"][0].startswith("color:")
        assert [f["property"] for f in response["failed"]] == ["boxShadow"]
        assert "text-red-500" in files.files["src/App.tsx"]

    def test_nothing_applicable(self, handler, files):
        original = files.files["src/App.tsx"]
        [response] = handler.handle(_style([("boxShadow", "", "0 0 2px red")]))
        assert response["success"] is False
        assert response["error"] == "No style change could be applied"
        assert files.files["src/App.tsx"] == original
        assert files.commits == []

    def test_inline_style(self, handler, files):
        data = _style([("color", "", "red")])
        data["changes"][0]["useInlineStyle"] = True
        [response] = handler.handle(data)
        assert response["success"] is True
        assert "style={{ color: 'red' }}" in files.files["src/App.tsx"]

    def test_element_not_in_file(self, handler):
        data = _style([("fontWeight", "400", "700")], selector="#nowhere")
        del data["sourceLocation"]
        del data["textContent"]
        [response] = handler.handle(data)
        assert response["success"] is False
        assert response["attempted"] == ["line_number", "selector_id", "text_content", "class_attribute"]

    def test_file_not_found(self, handler):
        data = {
            "type": "style_update",
            "selector": "#nowhere",
            "changes": [{"property": "fontWeight", "oldValue": "", "newValue": "700"}],
        }
        [response] = handler.handle(data)
        assert response["success"] is False
        assert "Could not determine file path" in response["error"]
        assert "file_path" in response["attempted"]

    def test_file_found_by_text(self, handler, files):
        data = {
            "type": "style_update",
            "selector": "h1",
            "changes": [{"property": "fontWeight", "oldValue": "", "newValue": "700"}],
            "textContent": "Welcome home",
        }
        [response] = handler.handle(data)
        assert response["filePath"] == "src/App.tsx"
        assert "font-bold" in files.files["src/App.tsx"]

    def test_file_found_by_spaced_id(self, handler, files):
        files.files["src/Pricing.tsx"] = '<section id = "pricing" className="py-8">\n  <h2>Plans</h2>\n</section>\n'
        data = {
            "type": "style_update",
            "selector": '#pricing[data-liveedit-id="el-3-aaa111"]',
            "changes": [{"property": "fontWeight", "oldValue": "", "newValue": "700"}],
        }
        [response] = handler.handle(data)
        assert response["success"] is True
        assert response["filePath"] == "src/Pricing.tsx"
        assert 'className="py-8 font-bold"' in files.files["src/Pricing.tsx"]

    def test_sandbox_path_is_normalized(self, handler):
        data = _style([("fontWeight", "400", "700")], filePath="/workspace/i-abc123/src/App.tsx")
        [response] = handler.handle(data)
        assert response["filePath"] == "src/App.tsx"

    def test_save_failure(self, handler, files):
        files.fail_saves = True
        [response] = handler.handle(_style([("fontWeight", "400", "700")]))
        assert response["success"] is False
        assert "save rejected" in response["error"]

    def test_publishes_event(self, handler):
        events = []
        handler.bus.subscribe(StylesPatched, events.append)
        handler.handle(_style([("fontWeight", "400", "700")]))
        assert events == [StylesPatched("src/App.tsx", TITLE, ("fontWeight: font-bold",), ())]

    def test_deploys_unless_skipped(self, files):
        deploys = []
        handler = DesignModeHandler(files, deployer=lambda: deploys.append(1))
        handler.handle(_style([("fontWeight", "400", "700")]))
        assert deploys == []
        handler.handle(_style([("color", "", "#ef4444")], skipDeploy=False))
        assert deploys == [1]


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


class TestTextUpdate:
    def test_replaces_visible_text_only(self, handler, files):
        [response] = handler.handle(
            {
                "type": "text_update",
                "selector": "p.subtitle",
                "oldText": "completed",
                "newText": "finished",
                "filePath": "src/App.tsx",
                "sourceLocation": {"filePath": "src/App.tsx", "lineNumber": 6},
            }
        )
        assert response == {
            "type": "text_updated",
            "success": True,
            "selector": "p.subtitle",
            "filePath": "src/App.tsx",
        }
        source = files.files["src/App.tsx"]
        assert "task.completed" in source
        assert ">finished</p>" in source

    def test_refuses_code_only_matches(self, handler, files):
        original = files.files["src/App.tsx"]
        [response] = handler.handle(
            {
                "type": "text_update",
                "selector": "#nowhere",
                "oldText": "status",
                "newText": "state",
                "filePath": "src/App.tsx",
            }
        )
        assert response["success"] is False
        assert "looks like code" in response["error"]
        assert files.files["src/App.tsx"] == original

    def test_missing_text(self, handler):
        [response] = handler.handle(
            {"type": "text_update", "selector": TITLE, "oldText": "Goodbye", "newText": "Bye", "filePath": "src/App.tsx"}
        )
        assert response["success"] is False
        assert "not found" in response["error"]


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


class TestImageUpload:
    def test_chunks_then_image_is_pointed_at_asset(self, handler, files):
        context = {"selector": IMAGE, "tagName": "img", "filePath": "src/App.tsx", "className": "w-full"}
        chunks = _chunks(b"\x89PNG\r\n\x1a\nfake-image", context)
        responses = [handler.handle(chunk)[0] for chunk in chunks]

        assert [r["type"] for r in responses[:-1]] == ["upload_progress"] * (len(chunks) - 1)
        assert responses[0]["received"] == 1
        assert responses[-1] == {
            "type": "image_uploaded",
            "success": True,
            "uploadId": "abcdef123456",
            "imagePath": "/images/abcdef12-hero.png",
        }
        assert files.binaries["public/images/abcdef12-hero.png"] == b"\x89PNG\r\n\x1a\nfake-image"
        assert 'src="/images/abcdef12-hero.png"' in files.files["src/App.tsx"]

    def test_background_image(self, handler, files):
        context = {
            "selector": TITLE,
            "tagName": "h1",
            "sourceLocation": {"filePath": "src/App.tsx", "lineNumber": 5, "columnNumber": 7},
        }
        [response] = [handler.handle(c)[0] for c in _chunks(b"png", context, file_name="bg.png", isBackground=True)]
        assert response["success"] is True
        assert "requiresManualUpdate" not in response
        assert "bg-[url(/images/abcdef12-bg.png)]" in files.files["src/App.tsx"]

    def test_non_image_target_needs_manual_update(self, handler):
        context = {"selector": TITLE, "tagName": "h1", "filePath": "src/App.tsx"}
        [response] = [handler.handle(c)[0] for c in _chunks(b"png", context)]
        assert response["success"] is True
        assert response["requiresManualUpdate"] is True

    def test_rejected_upload(self, handler):
        [chunk] = _chunks(b"png", {})
        chunk["mimeType"] = "application/pdf"
        [response] = handler.handle(chunk)
        assert response["success"] is False
        assert "Unsupported file type" in response["error"]

    def test_absurd_chunk_count_is_rejected(self, handler):
        [chunk] = _chunks(b"png", {})
        chunk["totalChunks"] = 10**12
        [response] = handler.handle(chunk)
        assert response["type"] == "image_uploaded"
        assert response["success"] is False
        assert "totalChunks" in response["error"]
        assert handler.reassembler.pending_uploads == []


# ---------------------------------------------------------------------------
# Refresh and navigation
# ---------------------------------------------------------------------------


class TestRefreshAndGoToCode:
    def test_refresh_without_deployer(self, handler):
        assert handler.handle({"type": "refresh_preview"}) == [{"type": "preview_refreshed", "success": True}]

    def test_refresh_failure(self, files):
        def deployer():
            raise LiveEditError("build failed")

        handler = DesignModeHandler(files, deployer=deployer)
        [response] = handler.handle({"type": "refresh_preview"})
        assert response == {"type": "preview_refreshed", "success": False, "error": "build failed"}

    def test_go_to_code(self, handler):
        [response] = handler.handle({"type": "go_to_code", "selector": TITLE, "textContent": "Welcome home"})
        assert response["filePath"] == "src/App.tsx"
        assert response["lineNumber"] == 5
        assert response["columnNumber"] == 7

    def test_go_to_code_falls_back_to_first_line(self, handler):
        [response] = handler.handle({"type": "go_to_code", "selector": "#nowhere", "filePath": "src/App.tsx"})
        assert response["success"] is True
        assert response["lineNumber"] == 1

    def test_go_to_code_unknown_file(self, handler):
        [response] = handler.handle({"type": "go_to_code", "selector": "#nowhere"})
        assert response["success"] is False


class TestDispatch:
    def test_unknown_type(self, handler):
        assert handler.handle({"type": "teleport"}) == []

    def test_malformed_request(self, handler):
        [response] = handler.handle({"type": "style_update", "selector": "#a"})
        assert response["type"] == "error"
        assert response["context"] == "style_update"
