import re
from datetime import datetime

import pytest
from jkube.BUILDERS.image_name_formatter import (
    ImageNameFormatter,
    format_snapshot_timestamp,
    sanitize_name,
    sanitize_tag,
)
from jkube.MODELS.project import JavaProject

NOW = datetime(2024, 1, 2, 3, 4, 5, 678000)


def formatter(**kwargs):
    project = JavaProject(**{"group_id": "org.eclipse.jkube", "artifact_id": "My_App",
                             "version": "1.0-SNAPSHOT", **kwargs})
    return ImageNameFormatter(project, NOW)


def test_none_name():
    assert formatter().format(None) is None


def test_name_without_placeholders():
    assert formatter().format("docker.io/library/nginx:1.25") == "docker.io/library/nginx:1.25"


def test_group_artifact_and_latest():
    assert formatter().format("%g/%a:%l") == "jkube/my_app:latest"


def test_plain_version():
    assert formatter().format("%a:%v") == "my_app:1.0-SNAPSHOT"


def test_snapshot_timestamp():
    assert formatter().format("%t") == "snapshot-240102-030405-0678"
    assert re.fullmatch(r"snapshot-\d{6}-\d{6}-\d{4}", ImageNameFormatter(JavaProject(version="2-SNAPSHOT")).format("%t"))


def test_release_version_is_kept():
    f = formatter(version="2.1.0")
    assert f.format("%t") == "2.1.0"
    assert f.format("%l") == "2.1.0"


def test_user_property_overrides_group():
    f = formatter(properties={"jkube.image.user": "alice"})
    assert f.format("%g/%a") == "alice/my_app"


def test_tag_property_overrides_version():
    f = formatter(properties={"jkube.image.tag": "custom"})
    assert f.format("%a:%l") == "my_app:custom"
    assert f.format("%a:%v") == "my_app:custom"


def test_group_with_trailing_dot():
    assert formatter(group_id="org.example.").format("%g") == "example"


def test_semver_build_metadata():
    assert formatter(version="1.0.0+build.5").format("%v") == "1.0.0-build.5"
    f = formatter(version="1.0.0+build.5", properties={"jkube.image.tag.semver_plus_substitution": "_"})
    assert f.format("%v") == "1.0.0_build.5"
    assert formatter(version="1.0-SNAPSHOT+b1").format("%l") == "latest-b1"


def test_property_expressions_resolved_first():
    f = formatter(properties={"image.registry": "quay.io"})
    assert f.format("${image.registry}/%a") == "quay.io/my_app"


def test_callable():
    assert formatter()("%a") == "my_app"


def test_format_snapshot_timestamp():
    assert format_snapshot_timestamp(datetime(2023, 12, 31, 23, 59, 58, 5000)) == "231231-235958-0005"


@pytest.mark.parametrize("raw, expected", [
    ("my__Group...Name", "my__group.name"),
    ("a___b", "a__b"),
    ("Foo Bar!", "foobar"),
    ("with-dash", "with-dash"),
])
def test_sanitize_name(raw, expected):
    assert sanitize_name(raw) == expected


def test_sanitize_tag():
    assert sanitize_tag("1.0/feature+x") == "1.0-feature-x"
    assert len(sanitize_tag("a" * 200)) == 128
