# -*- coding: utf-8 -*-
"""
Saving and loading named flows.

A flow is stored as a `FlowRecord` ({id, name, blocks, connections,
timestamp}). All saved flows live as one JSON list under
`conf.STORAGE_FLOWS_KEY`; the periodic autosave writes a single reserved
record under `conf.STORAGE_AUTOSAVE_KEY`. Templates are FlowRecords too, kept
as a separate list under `conf.STORAGE_TEMPLATES_KEY`.

Storage sinks are key/value stores of strings:
- `MemoryStorage`: a dict, for tests and throwaway editors.
- `SettingsStorage`: Qt's QSettings, persisted per user.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from PyQt5.QtCore import QSettings

import flowbuilder.conf as conf
from flowbuilder.errors import StorageError

class StorageSink:
    """Interface of a string key/value store. Failures raise `StorageError`."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

class MemoryStorage(StorageSink):
    """A storage sink backed by a plain dict."""

    def __init__(self, items: Optional[Dict[str, str]] = None) -> None:
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

class SettingsStorage(StorageSink):
    """
    A storage sink backed by QSettings.

    Args:
        settings (QSettings, optional): The settings object to use. Defaults
            to the per-user native settings for the flow builder.
    """
    def __init__(self, settings: Optional[QSettings] = None) -> None:
        self.settings = settings if settings is not None else QSettings(conf.SETTINGS_ORGANIZATION,
                                                                        conf.SETTINGS_APPLICATION)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'SettingsStorage':
        """Creates a sink that stores its data in an INI file at `path`."""
        return cls(QSettings(str(path), QSettings.IniFormat))

    def get_item(self, key: str) -> Optional[str]:
        value = self.settings.value(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        self.settings.setValue(key, value)
        self._sync()

    def remove_item(self, key: str) -> None:
        self.settings.remove(key)
        self._sync()

    def _sync(self) -> None:
        self.settings.sync()
        if self.settings.status() != QSettings.NoError:
            raise StorageError(f"QSettings status {int(self.settings.status())} for {self.settings.fileName()}")

@dataclass
class FlowRecord:
    """A saved flow: the serialized graph plus its name, id and save time (epoch ms)."""
    id: str
    name: str
    blocks: List[Dict[str, Any]] = field(default_factory=list)
    connections: List[Dict[str, Any]] = field(default_factory=list)
    timestamp: int = 0

    def graph_data(self) -> Dict[str, Any]:
        return {conf.Key.BLOCKS: self.blocks, conf.Key.CONNECTIONS: self.connections}

    def to_dict(self) -> Dict[str, Any]:
        return {
            conf.Key.ID: self.id,
            conf.Key.NAME: self.name,
            conf.Key.BLOCKS: self.blocks,
            conf.Key.CONNECTIONS: self.connections,
            conf.Key.TIMESTAMP: self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FlowRecord':
        return cls(
            id=str(data[conf.Key.ID]),
            name=str(data.get(conf.Key.NAME) or conf.DEFAULT_FLOW_NAME),
            blocks=list(data.get(conf.Key.BLOCKS) or []),
            connections=list(data.get(conf.Key.CONNECTIONS) or []),
            timestamp=int(data.get(conf.Key.TIMESTAMP) or 0),
        )

class PersistenceAdapter:
    """
    Reads and writes flow records through a storage sink.

    Graph arguments only need a `to_dict()` method; the adapter serializes
    that copy, never the live objects.

    Attributes:
        storage (StorageSink): Where records are kept.
        log_func (callable): A function for logging messages.
        clock (callable): Returns the current time in seconds.
    """
    def __init__(self,
                 storage: StorageSink,
                 log_func: Optional[Callable[[str], None]] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.storage = storage
        self.log_func: Callable[[str], None] = log_func or print
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _read_json(self, key: str) -> Any:
        raw = self.storage.get_item(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            self.log_func(conf.UI.Log.STORAGE_CORRUPT.format(key=key, error=e))
            return None

    def _write_json(self, key: str, data: Any) -> None:
        try:
            payload = json.dumps(data)
        except (TypeError, ValueError) as e:
            raise StorageError(str(e)) from e
        self.storage.set_item(key, payload)

    def _read_entries(self, key: str) -> List[Any]:
        """
        Reads a stored list for rewriting.

        Entries are returned as stored, including ones that are not valid
        records, so a write never drops data it could not parse.

        Raises:
            StorageError: If the stored value is not a JSON list.
        """
        raw = self.storage.get_item(key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StorageError(conf.UI.Log.STORAGE_UNREADABLE.format(key=key, error=e)) from e
        if not isinstance(data, list):
            raise StorageError(conf.UI.Log.STORAGE_UNREADABLE.format(key=key, error=type(data).__name__))
        return data

    @staticmethod
    def _entry_id(entry: Any) -> Optional[str]:
        if isinstance(entry, dict) and entry.get(conf.Key.ID) is not None:
            return str(entry[conf.Key.ID])
        return None

    def _store_entry(self, key: str, entries: List[Any], record: FlowRecord) -> None:
        for i, entry in enumerate(entries):
            if self._entry_id(entry) == record.id:
                entries[i] = record.to_dict()
                break
        else:
            entries.append(record.to_dict())
        self._write_json(key, entries)

    def _record_from(self, data: Any) -> Optional[FlowRecord]:
        try:
            return FlowRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            self.log_func(conf.UI.Log.RECORD_MALFORMED.format(error=e))
            return None

    def _list_records(self, key: str) -> List[FlowRecord]:
        data = self._read_json(key)
        if not isinstance(data, list):
            return []
        records = (self._record_from(item) for item in data)
        return [record for record in records if record is not None]

    def list_flows(self) -> List[FlowRecord]:
        """Returns every saved flow, skipping unreadable entries."""
        return self._list_records(conf.STORAGE_FLOWS_KEY)

    def list_templates(self) -> List[FlowRecord]:
        """Returns every saved template, skipping unreadable entries."""
        return self._list_records(conf.STORAGE_TEMPLATES_KEY)

    def _new_id(self, entries: List[Any], prefix: str = conf.FLOW_ID_PREFIX) -> str:
        base = f"{prefix}{self._now_ms()}"
        ids = {self._entry_id(entry) for entry in entries}
        candidate, suffix = base, 1
        while candidate in ids:
            candidate = f"{base}_{suffix}"
            suffix += 1
        return candidate

    def save(self, graph: Any, name: str, flow_id: Optional[str] = None) -> FlowRecord:
        """
        Saves the graph as a named flow.

        A record with the same id is replaced in place; otherwise the new
        record is appended. The whole list is then written back; entries
        that are not valid records are kept as they were.

        Args:
            graph: The graph to save.
            name (str): The flow's display name.
            flow_id (str, optional): Id of the flow being re-saved. A new id
                is generated when omitted.

        Returns:
            FlowRecord: The record that was written.

        Raises:
            StorageError: If the stored list is unreadable or the sink cannot
                be written. Unreadable data is never overwritten.
        """
        data = graph.to_dict()
        entries = self._read_entries(conf.STORAGE_FLOWS_KEY)
        record = FlowRecord(
            id=flow_id or self._new_id(entries),
            name=name or conf.DEFAULT_FLOW_NAME,
            blocks=data[conf.Key.BLOCKS],
            connections=data[conf.Key.CONNECTIONS],
            timestamp=self._now_ms(),
        )
        self._store_entry(conf.STORAGE_FLOWS_KEY, entries, record)
        self.log_func(conf.UI.Log.FLOW_SAVED.format(name=record.name, flow_id=record.id, blocks=len(record.blocks)))
        return record

    def save_template(self, graph: Any, name: str) -> FlowRecord:
        """
        Saves the graph as a reusable template.

        Templates are kept apart from saved flows and are never replaced;
        each call appends a record with a fresh id.

        Raises:
            StorageError: If the stored list is unreadable or the sink cannot
                be written.
        """
        data = graph.to_dict()
        entries = self._read_entries(conf.STORAGE_TEMPLATES_KEY)
        record = FlowRecord(
            id=self._new_id(entries, conf.TEMPLATE_ID_PREFIX),
            name=name or conf.DEFAULT_FLOW_NAME,
            blocks=data[conf.Key.BLOCKS],
            connections=data[conf.Key.CONNECTIONS],
            timestamp=self._now_ms(),
        )
        self._store_entry(conf.STORAGE_TEMPLATES_KEY, entries, record)
        self.log_func(conf.UI.Log.TEMPLATE_SAVED.format(name=record.name, template_id=record.id,
                                                         blocks=len(record.blocks)))
        return record

    def load_template(self, template_id: str) -> Optional[FlowRecord]:
        for record in self.list_templates():
            if record.id == template_id:
                return record
        self.log_func(conf.UI.Log.TEMPLATE_NOT_FOUND.format(template_id=template_id))
        return None

    def autosave(self, graph: Any) -> Optional[FlowRecord]:
        """
        Writes the reserved autosave record.

        Returns:
            FlowRecord or None: The record written, or None if the graph has
            no blocks and nothing was written.

        Raises:
            StorageError: If the sink cannot be written.
        """
        data = graph.to_dict()
        if not data[conf.Key.BLOCKS]:
            self.log_func(conf.UI.Log.AUTOSAVE_SKIPPED)
            return None
        record = FlowRecord(
            id=conf.AUTOSAVE_FLOW_ID,
            name=conf.AUTOSAVE_FLOW_NAME,
            blocks=data[conf.Key.BLOCKS],
            connections=data[conf.Key.CONNECTIONS],
            timestamp=self._now_ms(),
        )
        self._write_json(conf.STORAGE_AUTOSAVE_KEY, record.to_dict())
        self.log_func(conf.UI.Log.AUTOSAVED.format(blocks=len(record.blocks)))
        return record

    def load(self, flow_id: str) -> Optional[FlowRecord]:
        for record in self.list_flows():
            if record.id == flow_id:
                return record
        self.log_func(conf.UI.Log.FLOW_NOT_FOUND.format(flow_id=flow_id))
        return None

    def load_autosave(self) -> Optional[FlowRecord]:
        data = self._read_json(conf.STORAGE_AUTOSAVE_KEY)
        if data is None:
            return None
        return self._record_from(data)

    def delete(self, flow_id: str) -> bool:
        entries = self._read_entries(conf.STORAGE_FLOWS_KEY)
        remaining = [entry for entry in entries if self._entry_id(entry) != flow_id]
        if len(remaining) == len(entries):
            self.log_func(conf.UI.Log.FLOW_NOT_FOUND.format(flow_id=flow_id))
            return False
        self._write_json(conf.STORAGE_FLOWS_KEY, remaining)
        self.log_func(conf.UI.Log.FLOW_DELETED.format(flow_id=flow_id))
        return True

    def export_flow(self, graph: Any, name: str, path: Union[str, Path], flow_id: Optional[str] = None) -> FlowRecord:
        """
        Writes one flow record to a JSON file.

        Raises:
            StorageError: If the file cannot be written.
        """
        data = graph.to_dict()
        timestamp = self._now_ms()
        record = FlowRecord(
            id=flow_id or f"{conf.FLOW_ID_PREFIX}{timestamp}",
            name=name or conf.DEFAULT_FLOW_NAME,
            blocks=data[conf.Key.BLOCKS],
            connections=data[conf.Key.CONNECTIONS],
            timestamp=timestamp,
        )
        try:
            Path(path).write_text(json.dumps(record.to_dict(), indent=conf.EXPORT_JSON_INDENT, ensure_ascii=False),
                                  encoding='utf-8')
        except OSError as e:
            raise StorageError(str(e)) from e
        self.log_func(conf.UI.Log.EXPORT_SUCCESS.format(file_path=path))
        return record

    def import_flow(self, path: Union[str, Path]) -> FlowRecord:
        """
        Reads one flow record from a JSON file written by `export_flow`.

        Raises:
            StorageError: If the file cannot be read or does not hold a flow record.
        """
        try:
            data = json.loads(Path(path).read_text(encoding='utf-8'))
            record = FlowRecord.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StorageError(str(e)) from e
        self.log_func(conf.UI.Log.IMPORT_SUCCESS.format(file_path=path))
        return record
