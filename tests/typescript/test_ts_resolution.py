from pathlib import Path

from cabinet.typescript import (
    CompilerHost,
    CompilerOptions,
    ModuleKind,
    ModuleResolutionCache,
    ModuleResolutionKind,
    resolve_js_module,
    resolve_module_name,
)
from cabinet.typescript.resolution import extension_of


def _resolve(root: Path, name: str, containing: str, options: CompilerOptions, cache=None):
    host = CompilerHost(str(root))
    return resolve_module_name(name, str(root / containing), options, host, cache)


CLASSIC = CompilerOptions(module=ModuleKind.AMD)
NODE10 = CompilerOptions(module=ModuleKind.COMMONJS)


def test_extension_of() -> None:
    assert extension_of("a/b.d.ts") == ".d.ts"
    assert extension_of("a/b.ts") == ".ts"
    assert extension_of("a/b.json") == ".json"
    assert extension_of("a/b.svg") == ".svg"
    assert extension_of("a/b") == ""


def test_resolution_kind_from_module() -> None:
    assert CLASSIC.get_module_resolution_kind() == ModuleResolutionKind.CLASSIC
    assert NODE10.get_module_resolution_kind() == ModuleResolutionKind.NODE10
    assert CompilerOptions(module=ModuleKind.NODENEXT).get_module_resolution_kind() == ModuleResolutionKind.NODENEXT
    assert CompilerOptions(module=ModuleKind.PRESERVE).get_module_resolution_kind() == ModuleResolutionKind.BUNDLER
    explicit = CompilerOptions(module=ModuleKind.AMD, module_resolution=ModuleResolutionKind.NODE10)
    assert explicit.get_module_resolution_kind() == ModuleResolutionKind.NODE10


def test_classic_walks_up_for_non_relative_names(make_tree) -> None:
    root = make_tree({"a": {"shared.ts": "", "b": {"c": {"app.ts": ""}}}})

    result = _resolve(root, "shared", "a/b/c/app.ts", CLASSIC)

    assert result.resolved_module.resolved_file_name == str(root / "a" / "shared.ts")
    assert result.resolved_module.extension == ".ts"


def test_failed_lookups_are_recorded(make_tree) -> None:
    root = make_tree({"src": {"app.ts": ""}})

    result = _resolve(root, "./missing", "src/app.ts", CLASSIC)

    assert result.resolved_module is None
    failed = result.failed_lookup_locations
    for suffix in (".ts", ".tsx", ".d.ts", ".js", ".jsx"):
        assert str(root / "src" / f"missing{suffix}") in failed


def test_js_extension_maps_to_typescript_source(make_tree) -> None:
    root = make_tree({"src": {"app.ts": "", "util.ts": ""}})

    result = _resolve(root, "./util.js", "src/app.ts", NODE10)

    assert result.resolved_module.resolved_file_name == str(root / "src" / "util.ts")


def test_javascript_pass_runs_after_typescript(make_tree) -> None:
    root = make_tree({"src": {"app.ts": "", "legacy.js": "", "both.js": "", "both.d.ts": ""}})

    legacy = _resolve(root, "./legacy", "src/app.ts", NODE10)
    both = _resolve(root, "./both", "src/app.ts", NODE10)

    assert legacy.resolved_module.extension == ".js"
    assert both.resolved_module.extension == ".d.ts"


def test_json_requires_resolve_json_module(make_tree) -> None:
    root = make_tree({"src": {"app.ts": "", "data.json": "{}"}})

    without = _resolve(root, "./data.json", "src/app.ts", NODE10)
    with_json = _resolve(
        root, "./data.json", "src/app.ts",
        CompilerOptions(module=ModuleKind.COMMONJS, resolve_json_module=True),
    )

    assert without.resolved_module is None
    assert with_json.resolved_module.resolved_file_name == str(root / "src" / "data.json")


def test_node10_package_types_field(make_tree) -> None:
    root = make_tree({
        "src": {"app.ts": ""},
        "node_modules": {
            "pkg": {
                "package.json": '{ "types": "lib/index.d.ts" }',
                "lib": {"index.d.ts": ""},
            }
        },
    })

    result = _resolve(root, "pkg", "src/app.ts", NODE10)

    assert result.resolved_module.resolved_file_name == str(root / "node_modules" / "pkg" / "lib" / "index.d.ts")
    assert result.resolved_module.is_external_library_import is True


def test_node10_main_field_maps_to_declaration(make_tree) -> None:
    root = make_tree({
        "src": {"app.ts": ""},
        "node_modules": {
            "pkg": {
                "package.json": '{ "main": "dist/main.js" }',
                "dist": {"main.js": "", "main.d.ts": ""},
            }
        },
    })

    result = _resolve(root, "pkg", "src/app.ts", NODE10)

    assert result.resolved_module.resolved_file_name == str(root / "node_modules" / "pkg" / "dist" / "main.d.ts")


def test_at_types_package(make_tree) -> None:
    root = make_tree({
        "src": {"app.ts": ""},
        "node_modules": {
            "@types": {
                "foo": {"index.d.ts": ""},
                "scope__bar": {"index.d.ts": ""},
            }
        },
    })

    foo = _resolve(root, "foo", "src/app.ts", NODE10)
    scoped = _resolve(root, "@scope/bar", "src/app.ts", NODE10)

    assert foo.resolved_module.resolved_file_name == str(root / "node_modules" / "@types" / "foo" / "index.d.ts")
    assert scoped.resolved_module.resolved_file_name == str(
        root / "node_modules" / "@types" / "scope__bar" / "index.d.ts"
    )


def test_classic_finds_at_types(make_tree) -> None:
    root = make_tree({
        "src": {"app.ts": ""},
        "node_modules": {"@types": {"foo": {"index.d.ts": ""}}},
    })

    result = _resolve(root, "foo", "src/app.ts", CLASSIC)

    assert result.resolved_module.resolved_file_name == str(root / "node_modules" / "@types" / "foo" / "index.d.ts")


def test_paths_exact_and_wildcard(make_tree) -> None:
    root = make_tree({
        "src": {
            "app.ts": "",
            "config.ts": "",
            "components": {"button.tsx": ""},
        }
    })
    options = CompilerOptions(
        module=ModuleKind.COMMONJS,
        base_url=str(root),
        paths={"@app/*": ["src/components/*"], "config": ["src/config.ts"]},
    )

    wildcard = _resolve(root, "@app/button", "src/app.ts", options)
    exact = _resolve(root, "config", "src/app.ts", options)

    assert wildcard.resolved_module.resolved_file_name == str(root / "src" / "components" / "button.tsx")
    assert exact.resolved_module.resolved_file_name == str(root / "src" / "config.ts")


def test_paths_without_base_url_use_config_directory(make_tree) -> None:
    root = make_tree({"src": {"app.ts": "", "lib": {"math.ts": ""}}})
    options = CompilerOptions(
        module=ModuleKind.COMMONJS,
        paths={"~/*": ["src/*"]},
        paths_base_path=str(root),
    )

    result = _resolve(root, "~/lib/math", "src/app.ts", options)

    assert result.resolved_module.resolved_file_name == str(root / "src" / "lib" / "math.ts")


def test_base_url_for_non_relative_names(make_tree) -> None:
    root = make_tree({"src": {"app.ts": "", "services": {"api.ts": ""}}})
    options = CompilerOptions(module=ModuleKind.COMMONJS, base_url=str(root / "src"))

    result = _resolve(root, "services/api", "src/app.ts", options)

    assert result.resolved_module.resolved_file_name == str(root / "src" / "services" / "api.ts")


def test_root_dirs(make_tree) -> None:
    root = make_tree({
        "src": {"views": {"main.ts": ""}},
        "generated": {"views": {"template.ts": ""}},
    })
    options = CompilerOptions(
        module=ModuleKind.COMMONJS,
        root_dirs=[str(root / "src"), str(root / "generated")],
    )

    result = _resolve(root, "./template", "src/views/main.ts", options)

    assert result.resolved_module.resolved_file_name == str(root / "generated" / "views" / "template.ts")


EXPORTS_PACKAGE = {
    "src": {"app.ts": ""},
    "node_modules": {
        "pkg": {
            "package.json": """{
                "main": "./legacy.js",
                "exports": {
                    ".": {"types": "./dist/index.d.ts", "import": "./dist/index.mjs"},
                    "./feature": "./dist/feature.js",
                    "./utils/*": "./dist/utils/*.js"
                }
            }""",
            "legacy.d.ts": "",
            "dist": {
                "index.d.ts": "",
                "index.mjs": "",
                "feature.js": "",
                "feature.d.ts": "",
                "utils": {"strings.d.ts": ""},
            },
        }
    },
}


def test_exports_used_by_bundler_resolution(make_tree) -> None:
    root = make_tree(EXPORTS_PACKAGE)
    options = CompilerOptions(module=ModuleKind.ESNEXT, module_resolution=ModuleResolutionKind.BUNDLER)
    dist = root / "node_modules" / "pkg" / "dist"

    assert _resolve(root, "pkg", "src/app.ts", options).resolved_module.resolved_file_name == str(
        dist / "index.d.ts"
    )
    assert _resolve(root, "pkg/feature", "src/app.ts", options).resolved_module.resolved_file_name == str(
        dist / "feature.d.ts"
    )
    assert _resolve(root, "pkg/utils/strings", "src/app.ts", options).resolved_module.resolved_file_name == str(
        dist / "utils" / "strings.d.ts"
    )


def test_exports_block_unlisted_subpaths(make_tree) -> None:
    root = make_tree(EXPORTS_PACKAGE)
    options = CompilerOptions(module=ModuleKind.NODE16)

    assert _resolve(root, "pkg/legacy", "src/app.ts", options).resolved_module is None


def test_exports_ignored_by_node10(make_tree) -> None:
    root = make_tree(EXPORTS_PACKAGE)

    result = _resolve(root, "pkg", "src/app.ts", NODE10)

    assert result.resolved_module.resolved_file_name == str(root / "node_modules" / "pkg" / "legacy.d.ts")


def test_results_are_cached(make_tree) -> None:
    root = make_tree({"src": {"app.ts": "", "util.ts": ""}})
    host = CompilerHost(str(root))
    cache = ModuleResolutionCache(str(root), host)

    first = resolve_module_name("./util", str(root / "src" / "app.ts"), NODE10, host, cache)
    second = resolve_module_name("./util", str(root / "src" / "other.ts"), NODE10, host, cache)

    assert second is first
    assert len(cache) == 1


def test_resolve_js_module(make_tree) -> None:
    root = make_tree({
        "src": {"app.ts": ""},
        "node_modules": {"lib": {"index.js": "", "index.d.ts": ""}},
    })
    host = CompilerHost(str(root))

    assert resolve_js_module("lib", str(root / "src"), host) == str(root / "node_modules" / "lib" / "index.js")
    assert resolve_js_module("nope", str(root / "src"), host) is None
