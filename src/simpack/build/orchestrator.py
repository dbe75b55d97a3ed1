"""
Runnable build orchestration.

Builds a runnable (anything that builds like a simulation) into the
brand-specific HTML artifacts under <root>/<repo>/build/<brand>/.

Stages run strictly in sequence; each consumes the previous one's output:
    1. Resolve shared inputs (bundle, dependencies, locales, strings, licenses, mipmaps)
    2. Derive the production and debug code artifacts
    3. Derive preload and splash fragments
    4. Validate the title string
    5. Select the header banner
    6. Enumerate output targets
    7. Compose and write every artifact

Nothing is written before stage 7, so precondition failures, a missing
title and compressor failures leave the build directory untouched.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..config import FALLBACK_LOCALE, TRANSLATIONS_REPO, SimpackConfig
from ..errors import MissingRequiredDataError, OptionalResourceAbsent, PreconditionError
from ..output import TimedLogger, log, log_artifact, log_detail, log_phase, log_warning
from .assets import AssetEmbedder, EmbeddedAssets
from .brands import BrandPolicy, get_brand_policy
from .build_context import BuildRequest, CodeArtifacts, PackageInfo, SharedInputs, get_libs
from .collaborators import BundleResult, Collaborators, default_collaborators
from .headers import get_html_header
from .initialization import InitializationOptions, get_initialization_script
from .minify import MinifyOptions, minify
from .progress import ArtifactState, NullCallback, ProgressCallback
from .targets import ArtifactKind, Flavor, OutputTarget, compose_scripts, enumerate_output_targets

TOTAL_STAGES = 7

STRINGS_SCRIPT_PATH = Path(__file__).resolve().parent.parent / "templates" / "simpack-strings.js"

IS_BUILT_MARKER = "{{IS_BUILT}}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_build_timestamp(now: datetime) -> str:
    """All artifacts of one build share this timestamp, e.g. '2026-10-16 14:03:11 UTC'."""
    return now.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S") + " UTC"


@dataclass
class BuildResult:
    """Result of a runnable build.

    Attributes:
        build_dir: Brand-specific build directory
        targets: Output targets that were enumerated
        written: Every file written, in completion order of the write groups
        skipped: Outputs skipped because an optional resource was absent
        diagnostics: Bundler result (unused media/strings) for reporting
        build_time: Wall-clock seconds
    """

    build_dir: Path
    targets: List[OutputTarget]
    written: List[Path]
    skipped: List[str] = field(default_factory=list)
    diagnostics: Optional[BundleResult] = None
    build_time: float = 0.0


@dataclass(frozen=True)
class _ArtifactContext:
    """Immutable state every artifact writer reads in stage 7."""

    request: BuildRequest
    build_dir: Path
    shared: SharedInputs
    code: CodeArtifacts
    assets: EmbeddedAssets
    html_header: str
    title: str
    strings_script: str
    init_options: InitializationOptions


def derive_code_artifacts(bundle_code: str, request: BuildRequest, policy: BrandPolicy, npx: Sequence[str]) -> CodeArtifacts:
    """Produce exactly one production and one debug rendering of the bundle.

    Production is minified (transpiled first) only when requested, otherwise
    it is the raw bundle. Debug is minified without stripping only for brands
    whose debug code differs, otherwise it is the raw bundle.
    """
    if request.minify:
        production = minify(bundle_code, MinifyOptions(mangle=request.mangle, transpile=True), npx=npx)
    else:
        production = bundle_code

    if policy.debug_differs:
        debug_options = MinifyOptions(mangle=True, transpile=True, strip_assertions=False, strip_logging=False)
        debug = minify(bundle_code, debug_options, npx=npx)
    else:
        debug = bundle_code

    return CodeArtifacts(production=production, debug=debug)


def resolve_locales(fallback_and_declared: Sequence[str], requested: Optional[Sequence[str]]) -> tuple[str, ...]:
    """Per-locale targets: everything available for "*", else the caller's subset in order."""
    if requested is None:
        return tuple(fallback_and_declared)
    return tuple(dict.fromkeys(requested))


class RunnableBuilder:
    """
    Orchestrates the build of one runnable per call.

    Collaborators (bundler, resolvers, packager, image generators) are
    injected; the builder only sequences them and decides which artifacts
    exist. Builds against the same RunnableBuilder are serialized.
    """

    def __init__(
        self,
        config: SimpackConfig,
        collaborators: Optional[Collaborators] = None,
        clock: Callable[[], datetime] = utc_now,
        progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize the builder.

        Args:
            config: Workspace configuration
            collaborators: External components (defaults to default_collaborators(config))
            clock: Source of the build timestamp and copyright year
            progress: Receives per-artifact progress in stage 7
        """
        self.config = config
        self.collaborators = collaborators if collaborators is not None else default_collaborators(config)
        self.clock = clock
        self.progress = progress if progress is not None else NullCallback()
        self._lock = asyncio.Lock()

    async def build(self, request: BuildRequest) -> BuildResult:
        """Execute the complete build.

        Raises:
            PreconditionError: Invalid workspace for the request (nothing is written)
            MissingRequiredDataError: Title string or splash image missing (nothing is written)
            TransformError: Transpiler/compressor failure (nothing is written)
            ToolInvocationError: A collaborator's external tool failed
        """
        async with self._lock:
            return await self._build(request)

    async def _build(self, request: BuildRequest) -> BuildResult:
        start_time = time.time()
        policy = get_brand_policy(request.brand)
        self._check_preconditions(request, policy)
        package = PackageInfo.load(self.config.repo_dir(request.repo))

        log(f"Building runnable: {request.repo} ({request.brand})")

        shared = await self._resolve_shared_inputs(request, package)

        with TimedLogger("Deriving code artifacts", phase=(2, TOTAL_STAGES)) as timed:
            code = await asyncio.to_thread(derive_code_artifacts, shared.bundle.code, request, policy, self.config.npx)
            timed.detail(f"Production: {len(code.production)} bytes")
            timed.detail(f"Debug: {len(code.debug)} bytes")

        with TimedLogger("Deriving preloads", phase=(3, TOTAL_STAGES)) as timed:
            embedder = AssetEmbedder(self.config.root, npx=self.config.npx)
            assets = await asyncio.to_thread(embedder.embed, request, policy, package)
            timed.detail(f"Preloads: {sum(len(p) for p in assets.preloads.production)} bytes")
            timed.detail(f"Mipmaps: {len(shared.mipmaps_script)} bytes")

        log_phase(4, TOTAL_STAGES, "Validating title string...")
        title = self._validate_title(package, shared)

        log_phase(5, TOTAL_STAGES, "Selecting header banner...")
        html_header = get_html_header(policy.banner, title, package.version, shared.year)
        log_detail(f"Banner: {policy.banner.value}", verbose_only=True)

        log_phase(6, TOTAL_STAGES, "Enumerating output targets...")
        has_screenshot = self._has_screenshot(request.repo)
        targets = enumerate_output_targets(request, policy, shared.locales, package.accessible, has_screenshot)
        log_detail(f"{len(targets)} output targets")

        context = _ArtifactContext(
            request=request,
            build_dir=self.config.build_dir(request.repo, request.brand.value),
            shared=shared,
            code=code,
            assets=assets,
            html_header=html_header,
            title=title,
            strings_script=STRINGS_SCRIPT_PATH.read_text(encoding="utf-8"),
            init_options=InitializationOptions(
                repo=request.repo,
                brand=request.brand,
                version=package.version,
                string_map=shared.string_map,
                dependencies=shared.dependencies,
                timestamp=shared.timestamp,
                third_party_entries=shared.third_party_entries,
            ),
        )

        log_phase(7, TOTAL_STAGES, f"Writing artifacts to {context.build_dir}...")
        written = await self._write_artifacts(context, targets)

        skipped = [] if has_screenshot else ["thumbnails"]
        for name in skipped:
            self.progress.on_artifact(name, ArtifactState.SKIPPED, "no screenshot")
        build_time = time.time() - start_time
        log_detail(f"Wrote {len(written)} files ({build_time:.2f}s)")
        return BuildResult(
            build_dir=context.build_dir,
            targets=targets,
            written=written,
            skipped=skipped,
            diagnostics=shared.bundle,
            build_time=build_time,
        )

    def _check_preconditions(self, request: BuildRequest, policy: BrandPolicy) -> None:
        if policy.required_sibling is not None:
            sibling = self.config.root / policy.required_sibling
            if not sibling.is_dir():
                raise PreconditionError(
                    f"Aborting the build of {request.brand} brand since proprietary repositories are not "
                    f"checked out ({sibling} is missing).\n"
                    "Please use --brands=phet (or another brand) in the future to avoid this."
                )
        repo_dir = self.config.repo_dir(request.repo)
        if not repo_dir.is_dir():
            raise PreconditionError(f"Target repository not found: {repo_dir}")

    async def _resolve_shared_inputs(self, request: BuildRequest, package: PackageInfo) -> SharedInputs:
        collaborators = self.collaborators
        with TimedLogger("Resolving shared inputs", phase=(1, TOTAL_STAGES)) as timed:
            # Bundling runs first: its diagnostics and mipmap requests feed later steps
            bundle = await collaborators.bundler.bundle(request.repo, request.brand, request.instrument)
            timed.detail(f"Bundle: {len(bundle.code)} bytes")
            self._report_diagnostics(bundle)

            libs = get_libs(package, request.brand)
            dependencies = await collaborators.dependencies.resolve(request.repo, (*libs, TRANSLATIONS_REPO))

            declared = [code for code in collaborators.strings.get_locales(request.repo) if code != FALLBACK_LOCALE]
            all_locales = (FALLBACK_LOCALE, *sorted(set(declared)))
            locales = resolve_locales(all_locales, request.locales)
            missing = [code for code in locales if code not in all_locales]
            if missing:
                log_warning(f"No translations found for requested locale(s): {', '.join(missing)}")
            timed.detail(f"Locales: {', '.join(locales)}")

            string_locales = tuple(dict.fromkeys((*all_locales, *locales)))
            string_map = collaborators.strings.get_string_map(string_locales, libs)
            if FALLBACK_LOCALE not in string_map:
                raise MissingRequiredDataError(f"String map has no entries for fallback locale '{FALLBACK_LOCALE}'")

            third_party_entries = collaborators.third_party.get_entries(request.repo, request.brand, libs)
            mipmaps_script = await collaborators.mipmaps.build_script(bundle.mipmaps)

        now = self.clock()
        return SharedInputs(
            package=package,
            bundle=bundle,
            dependencies=dependencies,
            locales=locales,
            all_locales=all_locales,
            string_map=string_map,
            third_party_entries=third_party_entries,
            mipmaps_script=mipmaps_script,
            libs=libs,
            timestamp=format_build_timestamp(now),
            year=now.year,
        )

    def _report_diagnostics(self, bundle: BundleResult) -> None:
        if bundle.unused_media:
            log_warning(f"{len(bundle.unused_media)} unused media file(s)")
            for path in bundle.unused_media:
                log_detail(f"unused media: {path}", verbose_only=True)
        if bundle.unused_strings:
            log_warning(f"{len(bundle.unused_strings)} unused string(s)")
            for key in bundle.unused_strings:
                log_detail(f"unused string: {key}", verbose_only=True)

    def _validate_title(self, package: PackageInfo, shared: SharedInputs) -> str:
        title_key = package.title_string_key
        title = shared.string_map[FALLBACK_LOCALE].get(title_key)
        if not title:
            raise MissingRequiredDataError(f"missing entry for sim title, key = {title_key}")
        return title

    def _has_screenshot(self, repo: str) -> bool:
        try:
            self.collaborators.images.get_screenshot(repo)
        except OptionalResourceAbsent as e:
            log_detail(f"Skipping thumbnails: {e}", verbose_only=True)
            return False
        return True

    async def _write_artifacts(self, context: _ArtifactContext, targets: List[OutputTarget]) -> List[Path]:
        context.build_dir.mkdir(parents=True, exist_ok=True)
        for target in targets:
            self.progress.register(target.filename)

        late_kinds = (ArtifactKind.SUPPLEMENTAL, ArtifactKind.THUMBNAIL, ArtifactKind.SOCIAL_CARD)
        independent = [t for t in targets if t.kind not in late_kinds]

        # Each writer reads only frozen shared state and writes its own path
        groups = await asyncio.gather(
            *(asyncio.to_thread(self._write_target, context, target) for target in independent)
        )
        written = [path for group in groups for path in group]

        for target in targets:
            if target.kind is ArtifactKind.SUPPLEMENTAL:
                self.progress.on_artifact(target.filename, ArtifactState.WRITING, "copying")
                copied = await self.collaborators.supplemental.copy(
                    context.request.repo, context.shared.package.version, context.build_dir
                )
                self.progress.on_artifact(target.filename, ArtifactState.DONE, f"{len(copied)} files")
                written.extend(copied)

        for target in targets:
            if target.kind is ArtifactKind.THUMBNAIL:
                assert target.width is not None and target.height is not None
                data = await self.collaborators.images.thumbnail(context.request.repo, target.width, target.height)
                written.append(self._write_bytes(context.build_dir / target.filename, data, target.filename))
            elif target.kind is ArtifactKind.SOCIAL_CARD:
                data = await self.collaborators.images.social_card(context.request.repo)
                written.append(self._write_bytes(context.build_dir / target.filename, data, target.filename))

        return written

    def _write_bytes(self, path: Path, data: bytes, name: str) -> Path:
        self.progress.on_artifact(name, ArtifactState.WRITING, "")
        path.write_bytes(data)
        self.progress.on_artifact(name, ArtifactState.DONE, f"{len(data)} bytes")
        log_artifact(path, len(data))
        return path

    def _write_target(self, context: _ArtifactContext, target: OutputTarget) -> List[Path]:
        self.progress.on_artifact(target.filename, ArtifactState.WRITING, "")
        try:
            paths = self._produce(context, target)
        except Exception as e:
            self.progress.on_artifact(target.filename, ArtifactState.FAILED, str(e))
            raise
        size = sum(p.stat().st_size for p in paths)
        self.progress.on_artifact(target.filename, ArtifactState.DONE, f"{size} bytes")
        for path in paths:
            log_artifact(path, path.stat().st_size)
        return paths

    def _produce(self, context: _ArtifactContext, target: OutputTarget) -> List[Path]:
        packager = self.collaborators.packager
        shared = context.shared
        repo = context.request.repo
        path = context.build_dir / target.filename

        if target.kind is ArtifactKind.XHTML:
            path.mkdir(parents=True, exist_ok=True)
            return packager.package_xhtml(
                path,
                repo,
                context.request.brand,
                shared.string_map,
                shared.package.title_string_key,
                context.html_header,
                self.get_document_scripts(context, target),
            )

        if target.is_document:
            assert target.locale is not None
            text = packager.package_runnable(
                repo,
                shared.string_map,
                shared.package.title_string_key,
                context.html_header,
                target.locale,
                self.get_document_scripts(context, target),
            )
        elif target.kind is ArtifactKind.DEPENDENCIES:
            text = json.dumps(shared.dependencies, indent=2)
        elif target.kind is ArtifactKind.IFRAME:
            assert target.locale is not None
            text = packager.get_iframe_html(repo, context.title, target.locale)
        elif target.kind is ArtifactKind.A11Y_VIEW:
            # Only filled in during the build, never in the source template
            text = packager.get_a11y_view_html(repo, context.title).replace(IS_BUILT_MARKER, "true")
        else:
            raise ValueError(f"Unexpected output target kind: {target.kind}")

        path.write_text(text, encoding="utf-8")
        return [path]

    def get_document_scripts(self, context: _ArtifactContext, target: OutputTarget) -> List[str]:
        """Ordered scripts for a document target, in the target's flavor."""
        assert target.locale is not None
        debug = target.flavor is Flavor.DEBUG
        initialization = get_initialization_script(
            context.init_options,
            locale=target.locale,
            include_all_locales=target.include_all_locales,
            is_debug_build=debug,
        )
        return compose_scripts(
            initialization,
            context.assets.splash_script,
            context.shared.mipmaps_script,
            context.assets.preloads.debug if debug else context.assets.preloads.production,
            context.strings_script,
            context.code.debug if debug else context.code.production,
        )
