# pyright: reportAny=false, reportExplicitAny=false
"""Framework detection for project directories.

Three independent classifiers live here:

- detect_test_framework() names the test runner a project uses.
- is_test_file() decides from a path string alone whether a file is a test.
- detect_project_framework() names the application framework or ecosystem.

Only ``package.json`` is parsed. Other ecosystems are recognized by the
presence of a single marker file.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any, Final

import orjson

__all__ = [
    "FRAMEWORKS",
    "MANIFEST_NAME",
    "TEST_DIR_NAMES",
    "TestFramework",
    "detect_project_framework",
    "detect_test_framework",
    "is_test_file",
    "read_manifest",
]

MANIFEST_NAME: Final = "package.json"

_JS_EXTENSIONS: Final = frozenset({".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"})
_MOCHA_EXTENSIONS: Final = frozenset({".js", ".ts", ".mjs", ".cjs"})

TEST_DIR_NAMES: Final = frozenset(
    {"__tests__", "__test__", "test", "tests", "spec", "specs", "e2e"}
)
"""Directory names whose files count as tests regardless of framework."""


@dataclass(frozen=True, slots=True)
class TestFramework:
    """A test runner and how to recognize it.

    Attributes:
        name: Framework name stored on Test rows.
        packages: Dependency names that declare the framework.
        manifest_key: Top-level ``package.json`` key holding its config.
        config_files: Config file names looked for in the project root.
    """

    name: str
    packages: frozenset[str]
    manifest_key: str | None = None
    config_files: tuple[str, ...] = field(default_factory=tuple)


FRAMEWORKS: Final = (
    TestFramework(
        name="jest",
        packages=frozenset({"jest", "@jest/core"}),
        manifest_key="jest",
        config_files=(
            "jest.config.js",
            "jest.config.ts",
            "jest.config.json",
            "jest.config.mjs",
            "jest.config.cjs",
        ),
    ),
    TestFramework(
        name="vitest",
        packages=frozenset({"vitest"}),
        config_files=(
            "vitest.config.ts",
            "vitest.config.js",
            "vitest.config.mjs",
            "vitest.config.mts",
        ),
    ),
    TestFramework(
        name="mocha",
        packages=frozenset({"mocha"}),
        manifest_key="mocha",
        config_files=(
            ".mocharc.js",
            ".mocharc.cjs",
            ".mocharc.json",
            ".mocharc.jsonc",
            ".mocharc.yaml",
            ".mocharc.yml",
            "mocha.opts",
        ),
    ),
    TestFramework(
        name="playwright",
        packages=frozenset({"@playwright/test", "playwright"}),
        config_files=(
            "playwright.config.ts",
            "playwright.config.js",
            "playwright.config.mjs",
        ),
    ),
    TestFramework(
        name="cypress",
        packages=frozenset({"cypress"}),
        config_files=(
            "cypress.config.ts",
            "cypress.config.js",
            "cypress.config.mjs",
            "cypress.config.cjs",
            "cypress.json",
        ),
    ),
    TestFramework(
        name="pytest",
        packages=frozenset({"pytest", "pytest-asyncio"}),
        config_files=("pytest.ini", "conftest.py"),
    ),
    TestFramework(
        name="unittest",
        packages=frozenset({"unittest"}),
    ),
)
"""Known test frameworks in precedence order."""


def read_manifest(root: Path) -> dict[str, Any] | None:
    """Read and parse ``package.json`` in a project root.

    Args:
        root: Project root directory.

    Returns:
        The manifest as a dict, or None if it is missing, unreadable, not
        valid JSON, or not a JSON object.
    """
    try:
        data = orjson.loads((root / MANIFEST_NAME).read_bytes())
    except (OSError, orjson.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None


def _dependencies(manifest: Mapping[str, Any]) -> dict[str, Any]:
    deps: dict[str, Any] = {}
    for key in ("dependencies", "devDependencies"):
        section = manifest.get(key)
        if isinstance(section, Mapping):
            deps.update(section)
    return deps


def _test_script(manifest: Mapping[str, Any]) -> str:
    scripts = manifest.get("scripts")
    if not isinstance(scripts, Mapping):
        return ""
    test = scripts.get("test")
    return test if isinstance(test, str) else ""


def detect_test_framework(root: Path) -> str | None:
    """Detect the test framework a project uses.

    Checks, in order, with each check walking FRAMEWORKS in precedence
    order:

    1. Dependencies and devDependencies in ``package.json``.
    2. A framework config block embedded in ``package.json``.
    3. Framework names in the ``test`` script.
    4. Framework config files in the project root.

    An unparseable manifest is skipped and detection continues with the
    config files.

    Args:
        root: Project root directory.

    Returns:
        The framework name, or None if nothing matched.
    """
    manifest = read_manifest(root)
    if manifest is not None:
        deps = _dependencies(manifest)
        for framework in FRAMEWORKS:
            if any(package in deps for package in framework.packages):
                return framework.name

        for framework in FRAMEWORKS:
            if framework.manifest_key and framework.manifest_key in manifest:
                return framework.name

        test_script = _test_script(manifest)
        for framework in FRAMEWORKS:
            if framework.name in test_script:
                return framework.name

    for framework in FRAMEWORKS:
        for config_file in framework.config_files:
            if (root / config_file).is_file():
                return framework.name

    return None


def is_test_file(file_path: str, framework: str | None = None) -> bool:
    """Decide whether a path names a test file.

    Pure: only the path string is inspected, never the filesystem.

    A basename containing ``.test.`` or ``.spec.`` is always a test. A known
    framework applies its own rule:

    - jest, vitest: any JavaScript or TypeScript source file.
    - mocha: ``.js``, ``.ts``, ``.mjs`` or ``.cjs`` files.
    - playwright, cypress: JavaScript or TypeScript files whose name
      contains ``.e2e.`` or ``.cy.``.
    - pytest: ``.py`` files named ``test_*`` or containing ``_test``.
    - unittest: ``.py`` files named ``test*``.

    The jest, vitest, mocha, pytest and unittest rules are final. For any
    other framework, or none, a file is also a test if its basename or parent
    directory name is one of TEST_DIR_NAMES.

    Args:
        file_path: Path to the file, absolute or relative.
        framework: Detected test framework, if any.

    Returns:
        True if the file is a test file.
    """
    path = PurePath(file_path)
    basename = path.name.lower()
    if ".test." in basename or ".spec." in basename:
        return True

    suffix = path.suffix.lower()
    rule = _FRAMEWORK_RULES.get(framework) if framework else None
    if rule is not None:
        return rule(basename, suffix)

    if (
        framework in _BROWSER_FRAMEWORKS
        and suffix in _JS_EXTENSIONS
        and (".e2e." in basename or ".cy." in basename)
    ):
        return True

    return path.name in TEST_DIR_NAMES or path.parent.name in TEST_DIR_NAMES


_BROWSER_FRAMEWORKS: Final = frozenset({"playwright", "cypress"})

_FRAMEWORK_RULES: Final[dict[str, Callable[[str, str], bool]]] = {
    "jest": lambda _name, ext: ext in _JS_EXTENSIONS,
    "vitest": lambda _name, ext: ext in _JS_EXTENSIONS,
    "mocha": lambda _name, ext: ext in _MOCHA_EXTENSIONS,
    "pytest": lambda name, ext: (
        ext == ".py" and (name.startswith("test_") or "_test" in name)
    ),
    "unittest": lambda name, ext: ext == ".py" and name.startswith("test"),
}


# ----- Project framework -----

_MAJOR_VERSION_RE: Final = re.compile(r"(\d+)")


def _vue_label(deps: Mapping[str, Any]) -> str:
    version = deps.get("vue")
    match = _MAJOR_VERSION_RE.search(version) if isinstance(version, str) else None
    if match is None:
        return "vue"
    return f"vue {match.group(1)}"


_PROJECT_FRAMEWORKS: Final[tuple[tuple[str, frozenset[str]], ...]] = (
    # Meta-frameworks before the libraries they wrap
    ("next.js", frozenset({"next"})),
    ("nuxt", frozenset({"nuxt", "nuxt3"})),
    ("remix", frozenset({"@remix-run/react", "@remix-run/node", "@remix-run/dev"})),
    ("gatsby", frozenset({"gatsby"})),
    ("sveltekit", frozenset({"@sveltejs/kit"})),
    ("astro", frozenset({"astro"})),
    ("nest.js", frozenset({"@nestjs/core"})),
    ("react-native", frozenset({"react-native"})),
    ("expo", frozenset({"expo"})),
    ("electron", frozenset({"electron"})),
    # UI libraries
    ("angular", frozenset({"@angular/core"})),
    ("vue", frozenset({"vue"})),
    ("svelte", frozenset({"svelte"})),
    ("solid", frozenset({"solid-js"})),
    ("react", frozenset({"react"})),
    # Servers
    ("express", frozenset({"express"})),
    ("fastify", frozenset({"fastify"})),
    ("koa", frozenset({"koa"})),
    ("hapi", frozenset({"@hapi/hapi", "hapi"})),
    # Bundlers
    ("vite", frozenset({"vite"})),
    ("webpack", frozenset({"webpack"})),
    ("parcel", frozenset({"parcel", "parcel-bundler"})),
)

_NODE_FALLBACK: Final = "node.js"

_MARKER_FILES: Final = (
    ("Cargo.toml", "rust"),
    ("go.mod", "go"),
    ("pyproject.toml", "python"),
    ("requirements.txt", "python"),
    ("setup.py", "python"),
    ("pom.xml", "java"),
    ("build.gradle", "java"),
    ("Gemfile", "ruby"),
    ("composer.json", "php"),
)


def detect_project_framework(root: Path) -> str | None:
    """Detect a project's application framework or ecosystem.

    With a parseable ``package.json``, dependencies are matched against an
    ordered catalogue and the first hit wins; a manifest that matches
    nothing yields ``"node.js"``. Vue is reported with its declared major
    version, e.g. ``"vue 3"``.

    Without a usable manifest, marker files decide: ``Cargo.toml`` is rust,
    ``go.mod`` is go, ``pyproject.toml``, ``requirements.txt`` or
    ``setup.py`` is python, ``pom.xml`` or ``build.gradle`` is java,
    ``Gemfile`` is ruby and ``composer.json`` is php.

    Args:
        root: Project root directory.

    Returns:
        The framework name, or None if there is neither a manifest nor a
        marker file.
    """
    manifest = read_manifest(root)
    if manifest is not None:
        deps = _dependencies(manifest)
        for name, packages in _PROJECT_FRAMEWORKS:
            if any(package in deps for package in packages):
                return _vue_label(deps) if name == "vue" else name
        return _NODE_FALLBACK

    for marker, name in _MARKER_FILES:
        if (root / marker).is_file():
            return name
    return None
