"""
This is the main orchestrator for the type generation process.

It coordinates loading the API document, resolving its schemas, extracting
resources and type definitions, and rendering every output artifact. All
artifacts are rendered in memory before any of them is handed to the output
writer, so a failure at any stage leaves nothing half-written.
"""

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .config import GeneratorConfig
from .helpers import to_snake_case, unique_name
from .loader import ContentType, load_api
from .models import (
    APIDescription,
    Artifact,
    DocTemplateVars,
    GroupVersionInfoTemplateVars,
    Resource,
    ResourceTemplateVars,
    TypeDef,
    TypesTemplateVars,
)
from .resource_extractor import ResourceExtractor
from .schema_resolver import ResolverContext, SchemaResolver
from .templating import TemplateRenderer
from .typedef_extractor import TypeDefExtractor

logger = logging.getLogger(__name__)


class GeneratorState(enum.Enum):
    INITIAL = "initial"
    LOADED = "loaded"
    RESOLVED = "resolved"
    EXTRACTED = "extracted"
    EMITTING = "emitting"
    DONE = "done"
    FAILED = "failed"


class ArtifactWriter(Protocol):
    def write(self, artifacts: Sequence[Artifact]): ...


@dataclass(frozen=True)
class CompilationResult:
    api: APIDescription
    resources: List[Resource]
    type_defs: List[TypeDef]


class Generator:
    """Orchestrates the compilation of one API document into Go source artifacts."""

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        renderer: Optional[TemplateRenderer] = None,
    ):
        """
        Initializes the generator.

        Args:
            config: The generation settings. Defaults are used when omitted.
            renderer: The template renderer. One over the packaged templates is
                      created when omitted.
        """
        self.config = config or GeneratorConfig()
        self.renderer = renderer or TemplateRenderer()
        self.state = GeneratorState.INITIAL

    def _transition(self, state: GeneratorState):
        logger.info("Generator state: %s -> %s", self.state.value, state.value)
        self.state = state

    def compile(
        self, data: bytes, content_type: ContentType = ContentType.UNKNOWN
    ) -> CompilationResult:
        """
        Runs the loader, resolver and both extractors over the raw document.
        A fresh resolver context is used for every call.
        """
        try:
            api = load_api(
                data, content_type, alias_extension=self.config.api_alias_extension
            )
            self._transition(GeneratorState.LOADED)

            resolver = SchemaResolver(api.definitions, ResolverContext())
            resolver.resolve_all()
            self._transition(GeneratorState.RESOLVED)

            resources = ResourceExtractor(
                api, resolver, self.config.ignore.resource_names
            ).extract()
            type_defs = TypeDefExtractor(api, resolver, resources).extract()
            self._transition(GeneratorState.EXTRACTED)
        except Exception:
            self._transition(GeneratorState.FAILED)
            raise
        return CompilationResult(api=api, resources=resources, type_defs=type_defs)

    def api_group(self, api: APIDescription) -> str:
        alias = (api.api_alias or "unknown").replace('"', "")
        return f"{alias}.{self.config.api_group_suffix}"

    def render(self, result: CompilationResult) -> List[Artifact]:
        """Renders every artifact of a compiled document, in emission order."""
        api_version = self.config.api_version
        api_group = self.api_group(result.api)
        type_defs_by_name = {type_def.name: type_def for type_def in result.type_defs}

        artifacts = [
            Artifact(
                "doc.go",
                self.renderer.render(
                    "doc", DocTemplateVars(api_version=api_version, api_group=api_group)
                ),
            ),
            Artifact(
                "groupversion_info.go",
                self.renderer.render(
                    "groupversion_info",
                    GroupVersionInfoTemplateVars(
                        api_version=api_version, api_group=api_group
                    ),
                ),
            ),
            Artifact(
                "types.go",
                self.renderer.render(
                    "types",
                    TypesTemplateVars(
                        api_version=api_version,
                        # Spec and status types are emitted with their resource.
                        type_defs=[t for t in result.type_defs if t.owner is None],
                    ),
                ),
            ),
        ]
        # Resource files must not replace a package-level file ('Doc' -> doc2.go).
        file_stems = {artifact.name[: -len(".go")] for artifact in artifacts}
        for resource in result.resources:
            file_stem = unique_name(to_snake_case(resource.kind), file_stems)
            file_stems.add(file_stem)
            artifacts.append(
                Artifact(
                    f"{file_stem}.go",
                    self.renderer.render(
                        "resource",
                        ResourceTemplateVars(
                            api_version=api_version,
                            resource=resource,
                            spec_type=type_defs_by_name[resource.spec_type_name],
                            status_type=type_defs_by_name[resource.status_type_name],
                        ),
                    ),
                )
            )
        return artifacts

    def generate(
        self,
        data: bytes,
        writer: ArtifactWriter,
        content_type: ContentType = ContentType.UNKNOWN,
    ) -> List[Artifact]:
        """
        Runs the full generation process and hands the rendered artifacts to
        `writer` only once every one of them has been rendered.
        """
        result = self.compile(data, content_type)
        self._transition(GeneratorState.EMITTING)
        try:
            artifacts = self.render(result)
            writer.write(artifacts)
        except Exception:
            self._transition(GeneratorState.FAILED)
            raise
        self._transition(GeneratorState.DONE)
        logger.info(
            "Generated %d artifacts for %d resources and %d types",
            len(artifacts),
            len(result.resources),
            len(result.type_defs),
        )
        return artifacts
