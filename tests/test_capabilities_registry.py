"""Tests for rendercaps.capabilities.registry.

Loads the scripts under tests/media/CustomCapabilities the way a renderer
would at startup and checks what ends up registered.
"""

from __future__ import annotations

import threading
import zipfile
from pathlib import Path

import pytest

from rendercaps.capabilities import (
    Capability,
    CapabilityRegistry,
    CapabilitySet,
    encode,
    write_script,
)


def test_serialize_blank(loaded_registry: CapabilityRegistry) -> None:
    caps = loaded_registry.lookup("TestCaps Blank")
    assert caps is not None
    assert caps == CapabilitySet()


def test_serialize_enum_capability(loaded_registry: CapabilityRegistry) -> None:
    caps = loaded_registry.lookup("TestCaps enum Capabilities")
    assert caps is not None
    assert caps.has_capability(Capability.AUTOMIPMAP)
    assert caps.has_capability(Capability.FBO_ARB)
    assert not caps.has_capability(Capability.BLENDING)


def test_serialize_string_capability(loaded_registry: CapabilityRegistry) -> None:
    caps = loaded_registry.lookup("TestCaps set String")
    assert caps is not None
    assert caps.is_shader_profile_supported("vs99")


def test_serialize_bool_capability(loaded_registry: CapabilityRegistry) -> None:
    caps_true = loaded_registry.lookup("TestCaps set bool (true)")
    caps_false = loaded_registry.lookup("TestCaps set bool (false)")
    assert caps_true is not None
    assert caps_false is not None
    assert caps_true.vertex_texture_units_shared is True
    assert caps_false.vertex_texture_units_shared is False


def test_serialize_int_capability(loaded_registry: CapabilityRegistry) -> None:
    caps = loaded_registry.lookup("TestCaps set int")
    assert caps is not None
    assert caps.num_multi_render_targets == 99


def test_serialize_real_capability(loaded_registry: CapabilityRegistry) -> None:
    caps = loaded_registry.lookup("TestCaps set Real")
    assert caps is not None
    assert caps.max_point_size == 99.5


def test_serialize_shader_capability(loaded_registry: CapabilityRegistry) -> None:
    caps = loaded_registry.lookup("TestCaps addShaderProfile")
    assert caps is not None
    assert caps.is_shader_profile_supported("vp1")
    assert caps.is_shader_profile_supported("vs_1_1")
    assert caps.is_shader_profile_supported("ps_99")


def test_lookup_miss_returns_none(loaded_registry: CapabilityRegistry) -> None:
    assert loaded_registry.lookup("No Such Device") is None
    assert loaded_registry.lookup("testcaps blank") is None
    assert "No Such Device" not in loaded_registry


def test_non_recursive_load_skips_subdirectories(media_dir: Path) -> None:
    registry = CapabilityRegistry()
    report = registry.bulk_load(media_dir, recursive=False)
    assert report.ok
    assert registry.lookup("TestCaps addShaderProfile") is None
    assert registry.lookup("TestCaps Blank") is not None


def test_names_and_len(loaded_registry: CapabilityRegistry) -> None:
    names = loaded_registry.names()
    assert names == sorted(names)
    assert len(loaded_registry) == len(names) == 8
    assert "TestCaps set Real" in loaded_registry


def test_clear_drops_everything(loaded_registry: CapabilityRegistry) -> None:
    loaded_registry.clear()
    assert len(loaded_registry) == 0
    assert loaded_registry.lookup("TestCaps Blank") is None


def test_one_bad_script_does_not_stop_the_rest(tmp_path: Path) -> None:
    good = CapabilitySet()
    good.set_capability(Capability.VBO)
    write_script(good, "good one", tmp_path / "a_good.rendercaps")
    (tmp_path / "b_bad.rendercaps").write_text(
        'render_system_capabilities "bad one"\n{\n\tnum_world_matrices lots\n}\n',
        encoding="utf-8",
    )
    (tmp_path / "c_broken.rendercaps").write_text(
        'render_system_capabilities "half"\n{\n\tvbo true\n}\nrender_system_capabilities\n',
        encoding="utf-8",
    )
    write_script(CapabilitySet(), "also good", tmp_path / "d_good.rendercaps")
    (tmp_path / "notes.txt").write_text("not a script", encoding="utf-8")

    registry = CapabilityRegistry()
    report = registry.bulk_load(tmp_path)

    assert not report.ok
    assert sorted(report.failed) == ["b_bad.rendercaps", "c_broken.rendercaps"]
    assert "line 3" in report.failed["b_bad.rendercaps"]
    assert sorted(report.loaded) == ["also good", "good one"]
    assert registry.lookup("good one") == good
    assert registry.lookup("bad one") is None
    # a document is all or nothing, so the valid first block is discarded too
    assert registry.lookup("half") is None


def test_strict_registry_rejects_unknown_keywords(tmp_path: Path) -> None:
    (tmp_path / "future.rendercaps").write_text(
        'render_system_capabilities "future"\n{\n\tray_tracing true\n}\n',
        encoding="utf-8",
    )
    lenient = CapabilityRegistry()
    assert lenient.bulk_load(tmp_path).ok
    assert lenient.lookup("future") == CapabilitySet()

    strict = CapabilityRegistry(strict=True)
    report = strict.bulk_load(tmp_path)
    assert "future.rendercaps" in report.failed
    assert strict.lookup("future") is None


def test_later_load_replaces_same_name(tmp_path: Path) -> None:
    first_dir = tmp_path / "first"
    second_dir = tmp_path / "second"
    first = CapabilitySet(num_texture_units=4)
    second = CapabilitySet(num_texture_units=16)
    write_script(first, "shared name", first_dir / "caps.rendercaps")
    write_script(second, "shared name", second_dir / "caps.rendercaps")
    write_script(CapabilitySet(), "only first", first_dir / "other.rendercaps")

    registry = CapabilityRegistry()
    registry.bulk_load(first_dir)
    registry.bulk_load(second_dir)

    assert registry.lookup("shared name").num_texture_units == 16
    assert registry.lookup("only first") is not None


def test_symlink_leaving_the_directory_does_not_stop_the_load(tmp_path: Path) -> None:
    root = tmp_path / "caps"
    root.mkdir()
    outside = write_script(CapabilitySet(), "outside", tmp_path / "caps_secret" / "s.rendercaps")
    (root / "a_link.rendercaps").symlink_to(outside)
    write_script(CapabilitySet(), "good", root / "z_good.rendercaps")

    registry = CapabilityRegistry()
    report = registry.bulk_load(root)

    assert report.loaded == ["good"]
    assert registry.lookup("good") == CapabilitySet()
    assert registry.lookup("outside") is None


def test_corrupt_zip_member_does_not_stop_the_load(tmp_path: Path) -> None:
    bad_text = encode(CapabilitySet(), "Corrupt").encode("utf-8")
    archive_path = tmp_path / "caps.zip"
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_STORED) as zf:
        zf.writestr("a_bad.rendercaps", bad_text)
        zf.writestr("b_good.rendercaps", encode(CapabilitySet(), "Intact"))
    raw = archive_path.read_bytes()
    archive_path.write_bytes(raw.replace(bad_text, bad_text.replace(b"false", b"fals3", 1)))

    registry = CapabilityRegistry()
    report = registry.bulk_load(archive_path, "Zip")

    assert list(report.failed) == ["a_bad.rendercaps"]
    assert "Corrupt member" in report.failed["a_bad.rendercaps"]
    assert registry.lookup("Intact") == CapabilitySet()
    assert registry.lookup("Corrupt") is None

def test_register_direct() -> None:
    registry = CapabilityRegistry()
    caps = CapabilitySet(device_name="Software")
    registry.register("sw", caps)
    assert registry.lookup("sw") is caps
    with pytest.raises(ValueError):
        registry.register("", caps)


def test_bulk_load_from_zip(tmp_path: Path) -> None:
    caps = CapabilitySet(max_point_size=64.0)
    caps.add_shader_profile("glsl")
    archive_path = tmp_path / "caps.zip"
    with zipfile.ZipFile(archive_path, "w") as zf:
        zf.writestr("gl/desktop.rendercaps", encode(caps, "Zipped GL"))
        zf.writestr("top.rendercaps", encode(CapabilitySet(), "Zipped Top"))
        zf.writestr("readme.txt", "ignored")

    registry = CapabilityRegistry()
    report = registry.bulk_load(archive_path, "Zip")
    assert report.ok
    assert registry.lookup("Zipped GL") == caps
    assert registry.lookup("Zipped Top") == CapabilitySet()


def test_missing_source_raises(tmp_path: Path) -> None:
    registry = CapabilityRegistry()
    with pytest.raises(FileNotFoundError):
        registry.bulk_load(tmp_path / "missing")
    with pytest.raises(ValueError):
        registry.bulk_load(tmp_path, "Tarball")


def test_concurrent_lookups_during_load(media_dir: Path) -> None:
    registry = CapabilityRegistry()
    errors: list[BaseException] = []
    stop = threading.Event()

    def reader() -> None:
        try:
            while not stop.is_set():
                caps = registry.lookup("TestCaps set int")
                assert caps is None or caps.num_multi_render_targets == 99
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for _ in range(5):
        registry.bulk_load(media_dir)
    stop.set()
    for t in threads:
        t.join(timeout=5)

    assert not errors
    assert registry.lookup("TestCaps set int").num_multi_render_targets == 99
