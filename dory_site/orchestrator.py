"""Drive a complete dory build from configuration check to delivered output.

The sequence is:

1. require and parse ``dory.json`` in the project root, before touching disk;
2. stage the project into the staging directory;
3. verify ``dory.json`` made it into the staged tree;
4. discover, load, and sequence content, and build the search index;
5. emit the core artefacts (metadata, search content, ``llms.txt``, sitemap,
   robots);
6. run the external compile command in the build root;
7. verify the output directory holds ``index.html`` and restore any core
   artefact the compile step removed;
8. apply site metadata to the root document, prerender every route, and
   inject server-rendered markup when a render bundle is available;
9. copy the output to ``<project>/dist`` when it was built elsewhere.

Staging cleanup runs in a ``finally`` block around the whole sequence, so the
user's staging directory is restored however the build ends. Fatal conditions
raise :class:`~dory_site.results.BuildError`; recoverable ones are logged and
collected in :attr:`BuildReport.warnings`.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import typing as typ

from ._constants import (
    CONFIG_FILENAME,
    FRONTMATTER_JSON,
    INDEX_HTML,
    LLM_TEXT,
    ROBOTS_TXT,
    SEARCH_CONTENT_JSON,
    SITEMAP_XML,
)
from .config import load_site_config, read_navigation_order
from .content import (
    SearchIndex,
    build_llm_text,
    discover_documents,
    load_documents,
    sequence_documents,
)
from .generator import (
    RenderBundleError,
    SeoRenderer,
    StaticEmitter,
    encode_json,
    inject_site_metadata,
    load_render_function,
    prerender_routes,
    render_routes,
)
from .results import BuildError, BuildReport, StageResult
from .workspace import WorkspaceStager

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .config import BuildSettings, SiteConfig
    from .content import ContentDocument

logger = logging.getLogger(__name__)


def run_compile(command: list[str], *, cwd: Path, env: dict[str, str]) -> None:
    """Run the external compile ``command`` in ``cwd``.

    Raises
    ------
    BuildError
        If the command cannot be started or exits non-zero.
    """
    logger.info("Running %s in %s", " ".join(command), cwd)
    try:
        subprocess.run(command, check=True, cwd=cwd, env=env, text=True)  # noqa: S603
    except FileNotFoundError as exc:
        msg = f"compile command not found: {command[0]}"
        raise BuildError(msg, path=cwd) from exc
    except subprocess.CalledProcessError as exc:
        msg = f"compile command exited with status {exc.returncode}"
        raise BuildError(msg, path=cwd) from exc


def discover_content(
    content_root: Path, navigation_order: list[str], *, workers: int = 1
) -> list[ContentDocument]:
    """Crawl, load, and sequence the documents under ``content_root``."""
    paths = discover_documents(content_root)
    loaded = load_documents(paths, workers=workers)
    ordered = sequence_documents(loaded, navigation_order)
    logger.info("Discovered %d content documents under %s", len(ordered), content_root)
    return ordered


def core_artifacts(
    site: SiteConfig, documents: list[ContentDocument], seo: SeoRenderer
) -> dict[str, bytes]:
    """Return the encoded core artefacts keyed by output-relative filename.

    The metadata and search arrays share the order of ``documents``. The
    metadata array is indented for readability; the search array stays compact.
    """
    index = SearchIndex.from_documents(documents)
    metadata = [doc.page_metadata() for doc in documents]
    return {
        FRONTMATTER_JSON: encode_json(metadata, indent=2),
        SEARCH_CONTENT_JSON: encode_json(index.to_builtins()),
        LLM_TEXT: build_llm_text(documents).encode("utf-8"),
        SITEMAP_XML: seo.sitemap(site).encode("utf-8"),
        ROBOTS_TXT: seo.robots(site).encode("utf-8"),
    }


def emit_artifacts(emitter: StaticEmitter, artifacts: dict[str, bytes]) -> list[Path]:
    return [emitter.write_bytes(name, payload) for name, payload in artifacts.items()]


def build_index(
    content_root: Path,
    output_dir: Path,
    site: SiteConfig,
    *,
    workers: int = 1,
    seo: SeoRenderer | None = None,
) -> list[Path]:
    """Write the core artefacts for ``content_root`` without staging or compiling."""
    documents = discover_content(content_root, site.navigation_order, workers=workers)
    emitter = StaticEmitter(output_dir)
    return emit_artifacts(emitter, core_artifacts(site, documents, seo or SeoRenderer()))


class BuildOrchestrator:
    """Run the staged build pipeline for one project."""

    def __init__(
        self,
        settings: BuildSettings,
        *,
        skip_compile: bool = False,
        seo: SeoRenderer | None = None,
    ) -> None:
        self.settings = settings
        self.skip_compile = skip_compile
        self.seo = seo or SeoRenderer()
        self.stager = WorkspaceStager(
            settings.project_root, settings.staging_dir, settings.backup_dir
        )

    def run(self) -> BuildReport:
        """Execute the build and return its report.

        Raises
        ------
        BuildError
            On a missing or unreadable configuration, a staging failure, a
            failed compile, or an output directory without ``index.html``.
        SiteConfigError
            If ``dory.json`` is not a valid JSON object.
        """
        settings = self.settings
        config_path = settings.project_root / CONFIG_FILENAME
        if not config_path.is_file():
            msg = f"{CONFIG_FILENAME} not found in the project directory"
            raise BuildError(msg, path=config_path)
        site = load_site_config(config_path)
        report = BuildReport(output_dir=settings.output_dir)

        try:
            staged = self.stager.stage()
            staged.raise_for_failure()
            report.warnings.extend(f"skipped {item}" for item in staged.skipped)

            staged_config = settings.staging_dir / CONFIG_FILENAME
            if not staged_config.is_file():
                msg = f"{CONFIG_FILENAME} missing from the staged tree"
                raise BuildError(msg, path=staged_config)

            documents = discover_content(
                settings.staging_dir,
                read_navigation_order(staged_config),
                workers=settings.workers,
            )
            report.pages = len(documents)
            emitter = StaticEmitter(settings.output_dir)
            artifacts = core_artifacts(site, documents, self.seo)
            emit_artifacts(emitter, artifacts)

            if self.skip_compile:
                logger.info("Skipping compile step")
            elif settings.compile_command:
                run_compile(
                    settings.compile_command,
                    cwd=settings.build_root,
                    env=self._compile_env(),
                )

            self._verify_output().raise_for_failure()
            missing = {
                name: payload
                for name, payload in artifacts.items()
                if not (settings.output_dir / name).exists()
            }
            emit_artifacts(emitter, missing)

            metadata = [doc.page_metadata() for doc in documents]
            self._render(emitter, site, metadata, report)
            report.written = list(emitter.written)

            self._deliver()
        except BaseException:
            self.stager.mark_failed()
            raise
        else:
            self.stager.mark_succeeded()
        finally:
            cleaned = self.stager.cleanup()
            if not cleaned.ok:
                logger.error("Workspace cleanup failed: %s", cleaned.message)
                report.warnings.append(f"cleanup: {cleaned.message}")

        if report.ssr_failed:
            logger.warning("SSR failed for %d routes", report.ssr_failed)
        return report

    def _compile_env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["DORY_STAGING_DIR"] = str(self.settings.staging_dir)
        env["DORY_OUTPUT_DIR"] = str(self.settings.output_dir)
        return env

    def _verify_output(self) -> StageResult:
        output_dir = self.settings.output_dir
        if not output_dir.is_dir() or not any(output_dir.iterdir()):
            return StageResult.failure("verify", "output directory is empty", path=output_dir)
        root_document = output_dir / INDEX_HTML
        if not root_document.is_file():
            return StageResult.failure(
                "verify", "compile step produced no root document", path=root_document
            )
        return StageResult(stage="verify", path=output_dir)

    def _render(
        self,
        emitter: StaticEmitter,
        site: SiteConfig,
        metadata: list[dict[str, str]],
        report: BuildReport,
    ) -> None:
        root_document = self.settings.output_dir / INDEX_HTML
        try:
            base_html = root_document.read_text(encoding="utf-8")
        except OSError as exc:
            warning = f"prerender skipped: cannot read {root_document}: {exc}"
            logger.warning(warning)
            report.warnings.append(warning)
            return

        root_html = inject_site_metadata(base_html, site)
        emitter.write_text(INDEX_HTML, root_html)
        routes = prerender_routes(root_html, metadata, site)
        for rendered in routes:
            emitter.write_route(rendered)
        report.prerendered = len(routes)

        try:
            render = load_render_function(self.settings.ssr_bundle)
        except RenderBundleError as exc:
            warning = f"SSR skipped: {exc}"
            logger.warning(warning)
            report.warnings.append(warning)
            return
        if render is None:
            logger.info("No render bundle at %s; skipping SSR", self.settings.ssr_bundle)
            return

        ssr = render_routes(
            render, self.settings.output_dir, metadata, workers=self.settings.workers
        )
        for rendered in ssr.routes:
            emitter.write_route(rendered)
        report.ssr_rendered = ssr.rendered
        report.ssr_failed = ssr.failed
        report.warnings.extend(f"SSR failed for {route}" for route in ssr.failures)

    def _deliver(self) -> None:
        source = self.settings.output_dir
        target = self.settings.delivery_dir
        if source.resolve() == target.resolve():
            return
        if target.exists():
            shutil.rmtree(target)
        shutil.copytree(source, target)
        logger.info("Delivered output to %s", target)


__all__ = [
    "BuildOrchestrator",
    "build_index",
    "core_artifacts",
    "discover_content",
    "emit_artifacts",
    "run_compile",
]
