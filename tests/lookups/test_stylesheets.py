from pathlib import Path

import pytest

from cabinet.lookups import resolve_dependency_path, sass_lookup, stylus_lookup


STYLE_PROJECT = {
    "styles": {
        "main.scss": "",
        "_variables.scss": "",
        "legacy.sass": "",
        "mixins": {"_index.scss": ""},
        "theme.styl": "",
        "widgets": {"index.styl": ""},
    },
    "shared": {"_colors.scss": ""},
}


@pytest.fixture
def project(make_tree) -> Path:
    return make_tree(STYLE_PROJECT)


def test_sass_partial_with_underscore(project: Path) -> None:
    result = sass_lookup("variables", "styles/main.scss", "styles")
    assert result == str(project / "styles" / "_variables.scss")


def test_sass_other_syntax(project: Path) -> None:
    assert sass_lookup("legacy", "styles/main.scss", "styles") == str(project / "styles" / "legacy.sass")


def test_sass_directory_index(project: Path) -> None:
    assert sass_lookup("mixins", "styles/main.scss", "styles") == str(project / "styles" / "mixins" / "_index.scss")


def test_sass_falls_back_to_project_directory(project: Path) -> None:
    assert sass_lookup("colors", "styles/main.scss", "shared") == str(project / "shared" / "_colors.scss")


def test_sass_tilde_and_quotes(project: Path) -> None:
    assert sass_lookup("'~variables'", "styles/main.scss", "styles") == str(project / "styles" / "_variables.scss")


def test_sass_missing(project: Path) -> None:
    assert sass_lookup("nope", "styles/main.scss", "styles") == ""
    assert sass_lookup("", "styles/main.scss", "styles") == ""


def test_stylus_file_and_index(project: Path) -> None:
    assert stylus_lookup("theme", "styles/main.styl", "styles") == str(project / "styles" / "theme.styl")
    assert stylus_lookup("widgets", "styles/main.styl", "styles") == str(project / "styles" / "widgets" / "index.styl")
    assert stylus_lookup("nope", "styles/main.styl", "styles") == ""


def test_generic_relative_and_project_paths(project: Path) -> None:
    assert resolve_dependency_path("./util", "src/app.coffee", "lib") == str(project / "src" / "util.coffee")
    assert resolve_dependency_path("helpers/x", "src/app.coffee", "lib") == str(project / "lib" / "helpers" / "x.coffee")
    assert resolve_dependency_path("./data.json", "src/app.coffee", "lib") == str(project / "src" / "data.json")
    assert resolve_dependency_path("", "src/app.coffee", "lib") == ""
