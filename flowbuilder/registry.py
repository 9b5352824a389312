# -*- coding: utf-8 -*-
"""
The catalogue of block kinds that can be placed on the canvas.

This module provides the following classes:
- `PortSpec`: A named, typed port descriptor.
- `BlockType`: A registry entry describing one kind of block.
- `BlockTypeRegistry`: A read-only lookup of block types by key.

`default_registry()` returns a registry seeded with the standard block kinds.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import flowbuilder.conf as conf
from flowbuilder.errors import UnknownBlockTypeError

ConfigValue = Union[str, int, float, bool]

@dataclass(frozen=True)
class PortSpec:
    """A port descriptor: the port's display name and the type of data it carries."""
    name: str
    data_type: str = 'any'

    def to_dict(self) -> Dict[str, str]:
        return {conf.Key.NAME: self.name, conf.Key.DATA_TYPE: self.data_type}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PortSpec':
        return cls(name=str(data[conf.Key.NAME]), data_type=str(data.get(conf.Key.DATA_TYPE, 'any')))

@dataclass(frozen=True)
class BlockType:
    """
    Describes one kind of block.

    Attributes:
        key (str): The unique registry key, e.g. ``'textInput'``.
        category (str): Palette category, e.g. ``'Input'``.
        icon (str): A short glyph shown before the name.
        name (str): The display name.
        description (str): A one-line description.
        color (str): The category accent color as a hex string.
        config (Mapping[str, ConfigValue]): Default configuration, read-only.
        inputs (Tuple[PortSpec, ...]): Ordered input ports.
        outputs (Tuple[PortSpec, ...]): Ordered output ports.
    """
    key: str
    category: str
    icon: str
    name: str
    description: str
    color: str = conf.DEFAULT_ACCENT_COLOR
    config: Mapping[str, ConfigValue] = field(default_factory=dict)
    inputs: Tuple[PortSpec, ...] = ()
    outputs: Tuple[PortSpec, ...] = ()

    def __post_init__(self) -> None:
        # Entries are shared by every editor instance, so the mutable parts are frozen here.
        object.__setattr__(self, 'config', MappingProxyType(dict(self.config)))
        object.__setattr__(self, 'inputs', tuple(self.inputs))
        object.__setattr__(self, 'outputs', tuple(self.outputs))

    def default_config(self) -> Dict[str, ConfigValue]:
        """Returns a fresh, mutable copy of the default configuration."""
        return dict(self.config)

    def search_text(self) -> str:
        return f"{self.name} {self.description} {self.category}".lower()

class BlockTypeRegistry:
    """
    A read-only catalogue of block types, keyed by `BlockType.key`.

    Insertion order is preserved and is the order used by the palette.
    """
    def __init__(self, block_types: Iterable[BlockType] = ()) -> None:
        self._types: Dict[str, BlockType] = {}
        for block_type in block_types:
            if block_type.key in self._types:
                raise ValueError(f"Duplicate block type key '{block_type.key}'")
            self._types[block_type.key] = block_type

    def __contains__(self, key: object) -> bool:
        return key in self._types

    def __iter__(self) -> Iterator[BlockType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def get(self, key: str) -> Optional[BlockType]:
        """Returns the block type for `key`, or None if it is not registered."""
        return self._types.get(key)

    def require(self, key: str) -> BlockType:
        """
        Returns the block type for `key`.

        Raises:
            UnknownBlockTypeError: If `key` is not registered.
        """
        block_type = self._types.get(key)
        if block_type is None:
            raise UnknownBlockTypeError(conf.UI.Log.UNKNOWN_BLOCK_TYPE.format(type_key=key))
        return block_type

    def keys(self) -> List[str]:
        return list(self._types)

    def categories(self) -> List[str]:
        """Returns the distinct categories in first-seen order."""
        seen: Dict[str, None] = {}
        for block_type in self._types.values():
            seen.setdefault(block_type.category, None)
        return list(seen)

    def by_category(self) -> Dict[str, List[BlockType]]:
        """Groups the block types by category, for the palette."""
        groups: Dict[str, List[BlockType]] = {}
        for block_type in self._types.values():
            groups.setdefault(block_type.category, []).append(block_type)
        return groups

    def are_compatible(self, from_key: str, to_key: str) -> bool:
        """
        Returns True if a block of type `from_key` may feed one of type
        `to_key`, judged by their categories. Unknown keys are never
        compatible.
        """
        source, destination = self._types.get(from_key), self._types.get(to_key)
        if source is None or destination is None:
            return False
        return destination.category in conf.CATEGORY_COMPATIBILITY.get(source.category, ())

    def search(self, query: str) -> List[BlockType]:
        """
        Filters block types for the quick-add dialog.

        A block type matches when the lower-cased query is a substring of its
        name, description and category joined together. An empty query
        matches everything.

        Args:
            query (str): The text typed by the user.

        Returns:
            List[BlockType]: The matching block types in registry order.
        """
        needle = query.strip().lower()
        return [block_type for block_type in self._types.values() if needle in block_type.search_text()]

def _ports(*specs: Tuple[str, str]) -> Tuple[PortSpec, ...]:
    return tuple(PortSpec(name, data_type) for name, data_type in specs)

STANDARD_BLOCK_TYPES = (
    BlockType('textInput', 'Input', '📝', 'Text Input', 'Capture text input from user', '#00d4ff',
              {'placeholder': 'Enter text...', 'required': True},
              outputs=_ports(('text', 'string'))),
    BlockType('voiceInput', 'Input', '🎤', 'Voice Input', 'Capture voice via Supernova', '#00d4ff',
              {'language': 'en-US', 'continuous': False},
              outputs=_ports(('transcript', 'string'))),
    BlockType('fileUpload', 'Input', '📁', 'File Upload', 'Upload files to storage', '#00d4ff',
              {'accept': '*/*', 'storage': 'cubbit'},
              outputs=_ports(('file', 'file'))),
    BlockType('patternExtraction', 'Processing', '⚗️', 'Pattern Extraction', 'Extract patterns from LLM', '#00ff88',
              {'sourceModel': 'gpt4', 'targetCount': 1000000},
              inputs=_ports(('trigger', 'any')), outputs=_ports(('patterns', 'array'))),
    BlockType('aevInference', 'Processing', '🧠', 'AEV Inference', 'Run inference on .aev model', '#00ff88',
              {'modelPath': '', 'threshold': 0.75},
              inputs=_ports(('query', 'string')), outputs=_ports(('response', 'string'))),
    BlockType('consensusValidation', 'Processing', '🔐', 'Consensus Validation', 'Validate via consensus network', '#00ff88',
              {'votingThreshold': 0.67, 'minNodes': 3},
              inputs=_ports(('data', 'any')), outputs=_ports(('validated', 'boolean'))),
    BlockType('patternMatching', 'Processing', '🎯', 'Pattern Matching', 'Match against patterns', '#00ff88',
              {'similarity': 'cosine', 'threshold': 0.8},
              inputs=_ports(('query', 'string')), outputs=_ports(('matches', 'array'))),
    BlockType('saveToStorage', 'Storage', '💾', 'Save to Storage', 'Store data in provider', '#ff9f0a',
              {'provider': 'cubbit', 'encrypt': True},
              inputs=_ports(('data', 'any')), outputs=_ports(('url', 'string'))),
    BlockType('loadFromStorage', 'Storage', '📥', 'Load from Storage', 'Retrieve data from storage', '#ff9f0a',
              {'provider': 'cubbit', 'path': ''},
              inputs=_ports(('path', 'string')), outputs=_ports(('data', 'any'))),
    BlockType('condition', 'Logic', '🔀', 'Condition', 'Branch based on condition', '#8a2be2',
              {'operator': 'equals', 'value': ''},
              inputs=_ports(('input', 'any')), outputs=_ports(('true', 'any'), ('false', 'any'))),
    BlockType('loop', 'Logic', '🔄', 'Loop', 'Repeat actions', '#8a2be2',
              {'type': 'forEach', 'maxIterations': 100},
              inputs=_ports(('array', 'array')), outputs=_ports(('item', 'any'))),
    BlockType('textOutput', 'Output', '💬', 'Text Output', 'Display text to user', '#ff6b6b',
              {'format': 'plain', 'typing': True},
              inputs=_ports(('text', 'string'))),
    BlockType('voiceOutput', 'Output', '🔊', 'Voice Output', 'Speak via Supernova', '#ff6b6b',
              {'priority': False, 'speed': 1.0},
              inputs=_ports(('text', 'string'))),
    BlockType('notification', 'Output', '🔔', 'Notification', 'Show notification', '#ff6b6b',
              {'type': 'info', 'duration': 4000},
              inputs=_ports(('message', 'string'))),
    BlockType('cmsGeneration', 'Integration', '🏗️', 'CMS Generation', 'Generate CMS app', '#ffd700',
              {'platform': 'wordpress', 'autoUpload': True},
              inputs=_ports(('config', 'object')), outputs=_ports(('app', 'object'))),
    BlockType('testRunner', 'Testing', '🧪', 'Test Runner', 'Run benchmark tests', '#00d4ff',
              {'benchmark': 'mmlu', 'threshold': 0.7},
              inputs=_ports(('model', 'string')), outputs=_ports(('results', 'object'))),
)

def default_registry() -> BlockTypeRegistry:
    """Returns a registry holding the standard block kinds."""
    return BlockTypeRegistry(STANDARD_BLOCK_TYPES)
