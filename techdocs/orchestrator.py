"""Pipeline orchestration for the analyze, generate and validate flows."""

from __future__ import annotations

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple, TypeVar

from .analyzers import ArchitecturePatternDetector, CodeExampleExtractor, TechStackDetector
from .analyzers.utils import project_identity
from .catalog import Catalog, FileCatalog
from .config import AnalysisConfig
from .llm.client import ContentGenerator, GenerationFailure
from .llm.guides import GUIDES, Guide, GuideResult, order_guides, select_guides
from .logging import get_logger, log_stage
from .models import AnalysisResult, Capability, CodeExample, DomainMatch, ProjectInfo, RunMetadata
from .scoring import DomainScorer
from .stores import AnalysisStore, RunCache, analysis_payload
from .validators import GuideReport, ValidationEngine
from .writer import DocumentWriter

STAGE_TECH_STACK = "techStack"
STAGE_PATTERNS = "patterns"
STAGE_EXAMPLES = "examples"
_STAGES = (STAGE_TECH_STACK, STAGE_PATTERNS, STAGE_EXAMPLES)

_T = TypeVar("_T")


@dataclass
class _StageResults:
    """What the detector stages managed to produce before the barrier, a timeout or a crash."""

    capabilities: Mapping[str, Capability] = field(default_factory=dict)
    matches: List[DomainMatch] = field(default_factory=list)
    examples: List[CodeExample] = field(default_factory=list)
    completed: Set[str] = field(default_factory=set)
    failed: List[str] = field(default_factory=list)


@dataclass
class RunOutcome:
    """Everything a full ``run`` produced."""

    analysis: AnalysisResult
    analysis_path: Path
    generation: List[GuideResult]
    reports: Dict[str, GuideReport]


class Orchestrator:
    """Coordinates one analysis run and the generation and validation around it.

    Every call to :meth:`analyze` scans afresh and owns its own :class:`RunCache`
    and worker pool; nothing is carried over between runs.
    """

    def __init__(
        self,
        config: AnalysisConfig,
        *,
        catalog: FileCatalog | None = None,
        generator: ContentGenerator | None = None,
        sleep: Callable[[float], None] = time.sleep,
        max_workers: int = 2,
    ) -> None:
        self.config = config
        self.catalog = catalog or FileCatalog()
        self._generator = generator
        self._sleep = sleep
        self._max_workers = max_workers
        self.logger = get_logger("orchestrator")

    @property
    def generator(self) -> ContentGenerator:
        if self._generator is None:
            self._generator = ContentGenerator(
                self.config.ai, required_sections=self.config.validation.required_sections
            )
        return self._generator

    # ------------------------------------------------------------------
    # Analysis

    def analyze(self, root: str | Path) -> AnalysisResult:
        """Scan ``root`` and return a (possibly partial) analysis."""
        return asyncio.run(self.analyze_async(root))

    async def analyze_async(self, root: str | Path) -> AnalysisResult:
        started = time.monotonic()
        timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

        with log_stage(self.logger, "scan"):
            catalog = self.catalog.scan(root, self.config.scan)

        cache = RunCache(catalog)
        stop = threading.Event()
        results = _StageResults()
        timeout = self.config.scan.timeout or None
        executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="techdocs")
        try:
            async with asyncio.timeout(timeout):
                async with asyncio.TaskGroup() as group:
                    group.create_task(self._run_tech_stack(executor, catalog, stop, results))
                    group.create_task(self._run_patterns_and_examples(executor, catalog, cache, stop, results))
        except TimeoutError:
            stop.set()
            self.logger.warning(
                "Analysis timed out after %.0fs; emitting partial results", self.config.scan.timeout
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        failed = tuple(stage for stage in _STAGES if stage in results.failed)
        timed_out = tuple(stage for stage in _STAGES if stage not in results.completed and stage not in failed)
        capabilities = dict(results.capabilities)
        matches = tuple(results.matches)
        examples = tuple(results.examples)

        with log_stage(self.logger, "score"):
            scores = DomainScorer(self.config.scoring, self.config.validation).score(capabilities, matches, examples)

        root_path = catalog.root
        identity = project_identity(catalog.readable(), root_path.name)
        result = AnalysisResult(
            project=ProjectInfo(
                name=identity["name"],
                description=identity["description"],
                root=str(root_path),
                structure=catalog.structure(),
            ),
            capabilities=capabilities,
            matches=matches,
            examples=examples,
            scores=scores,
            metadata=RunMetadata(
                timestamp=timestamp,
                duration_seconds=round(time.monotonic() - started, 3),
                files_scanned=catalog.total_files,
                partial=bool(timed_out or failed),
                timed_out_stages=timed_out,
                failed_stages=failed,
                warnings=catalog.warnings,
            ),
        )
        self.logger.info(
            "Analysed %d files: %d capabilities, %d pattern matches, %d examples%s",
            catalog.total_files,
            len(capabilities),
            len(matches),
            len(examples),
            " (partial)" if timed_out or failed else "",
        )
        return result

    async def _run_stage(
        self,
        stage: str,
        executor: ThreadPoolExecutor,
        results: _StageResults,
        work: Callable[..., _T],
        *args: object,
    ) -> Optional[_T]:
        """Run one detector stage off the loop; a crash is recorded, never raised."""
        loop = asyncio.get_running_loop()
        try:
            with log_stage(self.logger, stage):
                value = await loop.run_in_executor(executor, work, *args)
        except Exception:  # noqa: BLE001
            self.logger.exception("Analysis stage %s failed; continuing with partial results", stage)
            results.failed.append(stage)
            return None
        results.completed.add(stage)
        return value

    async def _run_tech_stack(
        self, executor: ThreadPoolExecutor, catalog: Catalog, stop: threading.Event, results: _StageResults
    ) -> None:
        detector = TechStackDetector(self.config.signatures, stop=stop)
        capabilities = await self._run_stage(STAGE_TECH_STACK, executor, results, detector.detect, catalog)
        if capabilities is not None:
            results.capabilities = capabilities

    async def _run_patterns_and_examples(
        self,
        executor: ThreadPoolExecutor,
        catalog: Catalog,
        cache: RunCache,
        stop: threading.Event,
        results: _StageResults,
    ) -> None:
        rules = self.config.rules
        detector = ArchitecturePatternDetector(stop=stop)
        matches = await self._run_stage(STAGE_PATTERNS, executor, results, detector.detect, catalog, rules)
        if matches is None:
            results.failed.append(STAGE_EXAMPLES)
            return
        results.matches = matches

        def _extract() -> List[CodeExample]:
            extractor = CodeExampleExtractor(rules, syntax=cache.syntax, resolver=cache.resolver, stop=stop)
            return extractor.extract(catalog, matches, self.config.extraction)

        examples = await self._run_stage(STAGE_EXAMPLES, executor, results, _extract)
        if examples is not None:
            results.examples = examples

    def persist(self, analysis: AnalysisResult, output_dir: str | Path) -> Path:
        return AnalysisStore(Path(output_dir)).save(analysis)

    # ------------------------------------------------------------------
    # Generation

    def generate(
        self,
        analysis: AnalysisResult,
        output_dir: str | Path,
        guides: Optional[Sequence[str]] = None,
    ) -> List[GuideResult]:
        """Generate guides one at a time; a failed guide never blocks the rest."""
        writer = DocumentWriter(Path(output_dir))
        payload = analysis_payload(analysis)
        confidence = {domain: score.confidence for domain, score in analysis.scores.items()}
        selected = select_guides(guides) if guides else list(GUIDES)
        ordered = order_guides(selected, confidence)

        results: List[GuideResult] = []
        for index, guide in enumerate(ordered):
            if index and self.config.ai.rate_limit_delay > 0:
                self._sleep(self.config.ai.rate_limit_delay)
            domain_confidence = confidence.get(guide.domain, 0.0)
            self.logger.info("Generating %s", guide.name)
            try:
                content = self.generator.generate(payload, guide)
            except GenerationFailure as exc:
                self.logger.error("Failed to generate %s: %s", guide.name, exc.message)
                results.append(GuideResult(guide=guide, confidence=domain_confidence, error=exc.message))
                continue
            try:
                path = writer.write_guide(guide, content)
            except OSError as exc:
                message = f"could not write guide: {exc}"
                self.logger.error("Failed to write %s: %s", guide.name, exc)
                results.append(GuideResult(guide=guide, confidence=domain_confidence, error=message))
                continue
            results.append(GuideResult(guide=guide, confidence=domain_confidence, path=str(path)))

        writer.write_index(analysis, results)
        failed = sum(1 for result in results if not result.ok)
        self.logger.info("Generated %d of %d guides", len(results) - failed, len(results))
        return results

    # ------------------------------------------------------------------
    # Validation

    def validate(
        self,
        analysis: AnalysisResult,
        output_dir: str | Path,
        guides: Optional[Sequence[str]] = None,
    ) -> Dict[str, GuideReport]:
        """Validate the guides present in ``output_dir`` and write the report."""
        writer = DocumentWriter(Path(output_dir))
        selected: Optional[List[Guide]] = select_guides(guides) if guides else None
        documents = writer.read_guides(selected)
        if not documents:
            self.logger.warning("No generated guides found in %s", output_dir)
        reports = ValidationEngine(self.config.validation).validate(documents, analysis)
        writer.write_report(reports)
        return reports

    def load_or_analyze(self, root: str | Path, output_dir: str | Path) -> Tuple[AnalysisResult, bool]:
        """Return the persisted analysis when present, otherwise analyse afresh."""
        stored = AnalysisStore(Path(output_dir)).load()
        if stored is not None:
            return stored, False
        self.logger.info("No persisted analysis in %s; analysing %s", output_dir, root)
        analysis = self.analyze(root)
        self.persist(analysis, output_dir)
        return analysis, True

    # ------------------------------------------------------------------
    # Full pipeline

    def run(
        self,
        root: str | Path,
        output_dir: str | Path,
        guides: Optional[Sequence[str]] = None,
    ) -> RunOutcome:
        analysis = self.analyze(root)
        analysis_path = self.persist(analysis, output_dir)
        generation = self.generate(analysis, output_dir, guides)
        reports = self.validate(analysis, output_dir, guides)
        return RunOutcome(analysis=analysis, analysis_path=analysis_path, generation=generation, reports=reports)


__all__ = ["Orchestrator", "RunOutcome"]
