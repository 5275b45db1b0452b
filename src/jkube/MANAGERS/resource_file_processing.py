# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Writes resource files to an output directory through a chain of content processors.
"""
import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import yaml

from ..errors import ResourceProcessingError
from ..UTILS.map_util import deep_merge

logger = logging.getLogger(__name__)

YAML_EXTENSIONS = (".yml", ".yaml")


class ErrorStrategy(Enum):
    FAIL_FAST = "fail_fast"
    SKIP_ON_ERROR = "skip_on_error"


ENCODING_ATTRIBUTE = "encoding"
NamingStrategy = Callable[[str, str], str]


def default_naming_strategy(source_file: str, output_directory: str) -> str:
    """Keeps the file name of the source."""
    return os.path.join(output_directory, os.path.basename(source_file))


@dataclass
class ProcessingOptions:
    encoding: str = "utf-8"
    error_strategy: ErrorStrategy = ErrorStrategy.FAIL_FAST
    naming_strategy: NamingStrategy = default_naming_strategy


@dataclass
class ProcessingContext:
    """
    What a content processor gets to see.

    ``existing_content`` is the content of the target before the current
    source file is processed; ``previous_output`` is the output of the
    preceding processor, None for the first one. Attributes are passed
    along the chain of one file.
    """
    source_file: str
    target_file: str
    existing_content: Optional[str]
    previous_output: Optional[str]
    attributes: Dict[str, Any] = field(default_factory=dict)

    def get_attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def set_attribute(self, key: str, value: Any):
        self.attributes[key] = value


ContentProcessor = Callable[[ProcessingContext], Optional[str]]


@dataclass
class ProcessingMetadata:
    source_file: str
    processing_time_ms: int
    output_size: int


@dataclass
class ProcessingError:
    source_file: str
    exception: Exception


@dataclass
class ProcessingResult:
    processed_files: List[str] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)
    metadata: Dict[str, ProcessingMetadata] = field(default_factory=dict)
    total_processing_time_ms: int = 0

    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def failed_files(self) -> List[str]:
        return [error.source_file for error in self.errors]


def is_yaml(path: str) -> bool:
    return path.lower().endswith(YAML_EXTENSIONS)


def merge_yaml(earlier: str, later: str) -> str:
    """
    Deep merges two YAML documents; values of the later one win.
    """
    merged = deep_merge(yaml.safe_load(earlier) or {}, yaml.safe_load(later) or {})
    return yaml.safe_dump(merged, default_flow_style=False, sort_keys=False)


def read_source(context: ProcessingContext) -> str:
    """Content processor returning the content of the source file."""
    with open(context.source_file, "r", encoding=context.get_attribute(ENCODING_ATTRIBUTE, "utf-8")) as f:
        return f.read()


class ResourceFileProcessing:
    """
    Processes source files into target files.

    Each source file is mapped to a target by the naming strategy and run
    through all processors in the order they were added. Sources mapping to
    the same target are processed in input order; every one of them sees
    the target content produced so far as existing content. For YAML targets
    their outputs are deep merged, otherwise the last one wins.

    Usage::

        result = (ResourceFileProcessing()
                  .with_files(*files)
                  .with_output_directory(out_dir)
                  .add_processor(read_source)
                  .process())
    """

    def __init__(self):
        self.files: Optional[List[str]] = None
        self.output_directory: Optional[str] = None
        self.options = ProcessingOptions()
        self.processors: List[ContentProcessor] = []

    def with_files(self, *files: str) -> "ResourceFileProcessing":
        self.files = list(files)
        return self

    def with_output_directory(self, output_directory: str) -> "ResourceFileProcessing":
        self.output_directory = output_directory
        return self

    def with_options(self, options: ProcessingOptions) -> "ResourceFileProcessing":
        self.options = options
        return self

    def add_processor(self, processor: ContentProcessor) -> "ResourceFileProcessing":
        self.processors.append(processor)
        return self

    def process(self) -> ProcessingResult:
        """
        Runs the processors over all files and writes the targets.

        :return: The processed targets in first occurrence order, errors and metadata.
        :raises ValueError: If no output directory or no processor is set.
        :raises ResourceProcessingError: On the first failing file with ``FAIL_FAST``.
        """
        if self.output_directory is None:
            raise ValueError("Output directory must be set before processing")
        if not self.processors:
            raise ValueError("At least one processor must be added before processing")
        if not self.files:
            return ProcessingResult()

        start = time.monotonic()
        os.makedirs(self.output_directory, exist_ok=True)
        result = ProcessingResult()
        processed: Dict[str, None] = {}
        for source in self.files:
            try:
                target = self._process_file(source, target_written=processed, result=result)
                processed[target] = None
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.debug("Processing %s failed: %s", source, e)
                result.errors.append(ProcessingError(source, e))
                if self.options.error_strategy == ErrorStrategy.FAIL_FAST:
                    if isinstance(e, ResourceProcessingError):
                        raise
                    raise ResourceProcessingError(f"Cannot process {source}: {e}", source) from e
        result.processed_files = list(processed)
        result.total_processing_time_ms = _millis_since(start)
        return result

    def _process_file(self, source: str, target_written: Dict[str, None], result: ProcessingResult) -> str:
        file_start = time.monotonic()
        target = self.options.naming_strategy(source, self.output_directory)
        existing = None
        if os.path.exists(target):
            with open(target, "r", encoding=self.options.encoding) as f:
                existing = f.read()

        attributes: Dict[str, Any] = {ENCODING_ATTRIBUTE: self.options.encoding}
        output = None
        for processor in self.processors:
            context = ProcessingContext(source, target, existing, output, attributes)
            output = processor(context)
            attributes = context.attributes
        if output is None:
            raise ResourceProcessingError(f"Processor returned null content for file: {source}", source)

        if target in target_written and existing is not None and is_yaml(target):
            output = merge_yaml(existing, output)
        with open(target, "w", encoding=self.options.encoding) as f:
            f.write(output)
        logger.debug("Wrote %s", target)
        result.metadata[target] = ProcessingMetadata(source, _millis_since(file_start), len(output))
        return target


def _millis_since(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def process_files(files: Sequence[str], output_directory: str, *processors: ContentProcessor,
                  options: Optional[ProcessingOptions] = None) -> ProcessingResult:
    """
    Shortcut for processing files with the given processors.
    """
    processing = ResourceFileProcessing().with_files(*files).with_output_directory(output_directory)
    if options is not None:
        processing.with_options(options)
    for processor in processors:
        processing.add_processor(processor)
    return processing.process()
