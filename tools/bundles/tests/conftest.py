from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

import pytest

from aware_bundles.builder import ArtifactRequest, BundleConfig


def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """Create ``files`` (relative path -> content) below ``root``."""

    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


def write_descriptor(folder: Path, payload: dict, name: str = "package.bundle") -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class RecordingBackend:
    """Bundling backend that writes a stub artifact and remembers every request."""

    def __init__(self) -> None:
        self.requests: List[ArtifactRequest] = []

    def bundle(self, request: ArtifactRequest) -> None:
        self.requests.append(request)
        flavour = "min" if request.minify else "dev"
        request.target.write_text(f"// {request.kind} {request.plan.key} {flavour}\n", encoding="utf-8")


@pytest.fixture
def chat_source(tmp_path: Path) -> Path:
    """Source tree mirroring a small chat application with a framework."""

    source = tmp_path / "apps"
    write_tree(
        source,
        {
            "framework/core.js": "module.exports = {};\n",
            "framework/widgets/button.js": "module.exports = {};\n",
            "chat/chatHelper.js": "module.exports = {};\n",
            "chat/group/groupChat.app.js": "require('../chatHelper');\n",
            "chat/group/groupChatUser.js": "module.exports = {};\n",
            "chat/group/emoji/picker.js": "module.exports = {};\n",
            "empty/notes.txt": "not code\n",
            ".hidden/ignored.js": "module.exports = {};\n",
        },
    )
    write_descriptor(source / "framework", {"version": "1.0.0", "modules": ["react", "react-dom"]})
    return source


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def chat_config(chat_source: Path, tmp_path: Path) -> BundleConfig:
    return BundleConfig(input_dir=chat_source, output_dir=tmp_path / "dist", version="1.0.1", apps_name="apps")
