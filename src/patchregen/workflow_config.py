"""Workflow configuration loader.

Loads a workflow definition from YAML:

    name: my-workflow
    destination_files:
      include: ["**"]
      exclude: ["BUILD"]
    origin_files:
      include: ["src/**"]
    destination_prefix: third_party/lib
    import_same_version: false
    snapshot_patch:
      enabled: true
      path: third_party/lib/SNAPSHOT_PATCH
    autopatch:
      directory: AUTOPATCHES
      directory_prefix: third_party/lib
      header: "# Generated by patchregen"
      suffix: .patch
      strip_file_names_and_line_numbers: false
      glob:
        include: ["**/*.py"]
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .config import settings
from .exceptions import ConfigError
from .file_glob import Glob
from .models import AutoPatchConfig, RegenerationRequest

logger = logging.getLogger(__name__)


class GlobConfig(BaseModel):
    include: List[str] = Field(default_factory=lambda: ["**"])
    exclude: List[str] = Field(default_factory=list)

    def to_glob(self) -> Glob:
        return Glob.create(self.include, self.exclude)


class SnapshotPatchConfig(BaseModel):
    enabled: bool = False
    path: str = Field(default_factory=lambda: settings.snapshot_patch_path)


class AutoPatchSection(BaseModel):
    directory: str
    directory_prefix: str = ""
    header: Optional[str] = None
    suffix: str = ".patch"
    strip_file_names_and_line_numbers: bool = False
    glob: GlobConfig = Field(default_factory=GlobConfig)

    def to_config(self) -> AutoPatchConfig:
        return AutoPatchConfig(
            directory=self.directory,
            directory_prefix=self.directory_prefix,
            header=self.header,
            suffix=self.suffix,
            strip_file_names_and_line_numbers=self.strip_file_names_and_line_numbers,
            glob=self.glob.to_glob(),
        )


class WorkflowConfig(BaseModel):
    """Workflow settings relevant to patch regeneration."""

    name: str
    destination_files: GlobConfig = Field(default_factory=GlobConfig)
    origin_files: GlobConfig = Field(default_factory=GlobConfig)
    destination_prefix: str = ""
    import_same_version: bool = False
    snapshot_patch: SnapshotPatchConfig = Field(default_factory=SnapshotPatchConfig)
    autopatch: Optional[AutoPatchSection] = None

    def to_request(
        self,
        workdir: Path,
        regen_target: Optional[str] = None,
        regen_baseline: Optional[str] = None,
        source_ref: Optional[str] = None,
        force_import_baseline: bool = False,
        verbose: bool = False,
        environment: Optional[Dict[str, str]] = None,
    ) -> RegenerationRequest:
        """Combine the workflow with invocation options into a request."""
        return RegenerationRequest(
            workdir=workdir,
            workflow_name=self.name,
            destination_files=self.destination_files.to_glob(),
            regen_target=regen_target,
            regen_baseline=regen_baseline,
            source_ref=source_ref,
            use_single_patch_snapshot=self.snapshot_patch.enabled,
            force_import_baseline=force_import_baseline,
            import_same_version=self.import_same_version,
            autopatch=self.autopatch.to_config() if self.autopatch else None,
            snapshot_patch_path=self.snapshot_patch.path,
            verbose=verbose,
            environment=environment,
        )


def parse_workflow_config(data: Any, source: str = "<memory>") -> WorkflowConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"Workflow config {source} must be a mapping")
    try:
        return WorkflowConfig(**data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid workflow config {source}: {e}") from e


def load_workflow_config(path: Path) -> WorkflowConfig:
    """Load a workflow config from a YAML file.

    Raises:
        ConfigError: If the file is missing, not valid YAML or fails validation
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Workflow config not found: {path}. Check --config")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Workflow config {path} is not valid YAML: {e}") from e

    config = parse_workflow_config(data, str(path))
    logger.debug(f"[WorkflowConfig] Loaded workflow {config.name} from {path}")
    return config
