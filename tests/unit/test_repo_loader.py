from pathlib import Path

from sentinelpath.ingestion.repo_loader import language_for_path, load_repo
from sentinelpath.models import AnomalyType, Language


def write(root: Path, rel: str, content: str = "new Promise((resolve, reject) => resolve());") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def test_language_for_path():
    assert language_for_path("a/b.js") is Language.JAVASCRIPT
    assert language_for_path("b.MJS") is Language.JAVASCRIPT
    assert language_for_path("c.ts") is Language.TYPESCRIPT
    assert language_for_path("d.tsx") is Language.TSX
    assert language_for_path("e.py") is None


def test_collects_supported_files(tmp_path):
    write(tmp_path, "src/a.js")
    write(tmp_path, "src/b.ts")
    write(tmp_path, "README.md", "# docs")
    snap = load_repo([str(tmp_path)])
    assert [f.rel_path for f in snap.files] == ["src/a.js", "src/b.ts"]
    assert snap.stats == {"scanned": 3, "accepted": 2, "skipped": 1}
    assert all(len(f.content_hash) == 32 for f in snap.files)


def test_default_excludes(tmp_path):
    write(tmp_path, "node_modules/pkg/index.js")
    write(tmp_path, "dist/out.js")
    write(tmp_path, "lib/app.min.js")
    write(tmp_path, "types/api.d.ts")
    write(tmp_path, "lib/app.js")
    snap = load_repo([str(tmp_path)])
    assert [f.rel_path for f in snap.files] == ["lib/app.js"]


def test_user_excludes_and_hidden_dirs(tmp_path):
    write(tmp_path, "vendor/x.js")
    write(tmp_path, ".cache/y.js")
    write(tmp_path, "app.js")
    snap = load_repo([str(tmp_path)], excludes=["vendor/**"])
    assert [f.rel_path for f in snap.files] == ["app.js"]


def test_explicit_file_bypasses_excludes(tmp_path):
    path = write(tmp_path, "node_modules/pkg/index.js")
    snap = load_repo([str(path)])
    assert [f.rel_path for f in snap.files] == ["index.js"]


def test_extension_filter(tmp_path):
    write(tmp_path, "a.js")
    write(tmp_path, "b.ts")
    snap = load_repo([str(tmp_path)], extensions=[".ts"])
    assert [f.rel_path for f in snap.files] == ["b.ts"]


def test_large_file_is_skipped_with_anomaly(tmp_path):
    write(tmp_path, "big.js", "x" * 200)
    snap = load_repo([str(tmp_path)], max_file_bytes=100)
    assert snap.files == []
    assert [a.typ for a in snap.anomalies] == [AnomalyType.FILE_TOO_LARGE]


def test_binary_file_is_skipped_with_anomaly(tmp_path):
    (tmp_path / "blob.js").write_bytes(b"\x00\x01\x02binary")
    snap = load_repo([str(tmp_path)])
    assert snap.files == []
    assert [a.typ for a in snap.anomalies] == [AnomalyType.BINARY_FILE]
