"""
Accès au singleton des paramètres admin (blob JSON versionné).
- SupabaseSettingsStore: table 'admin_settings' (id UUID prioritaire, id entier en repli),
  écriture conditionnée par la version lue (verrou optimiste). DDL: storefront/admin/schema.sql.
- MemorySettingsStore: repli sans Supabase, amorcé par ADMIN_SETTINGS_JSON (non persistant).
"""
import copy
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import storefront.infra.supabase_client as supabase_client
from storefront import config

logger = logging.getLogger(__name__)

TABLE = "admin_settings"

# Violation de contrainte unique Postgres (ligne créée entre-temps)
UNIQUE_VIOLATION = "23505"

RowId = Union[str, int]


class SettingsConflictError(Exception):
    """La version stockée a changé entre la lecture et l'écriture."""


@dataclass
class SettingsSnapshot:
    settings: Dict[str, Any] = field(default_factory=dict)
    version: int = 0
    row_id: Optional[RowId] = None
    # False si la table n'a pas (encore) de colonne 'version'
    versioned: bool = True


# module storefront.admin.repository
class SupabaseSettingsStore:
    def _candidate_ids(self) -> List[RowId]:
        ids: List[RowId] = []
        if config.ADMIN_SETTINGS_ID:
            ids.append(config.ADMIN_SETTINGS_ID)
        ids.append(config.ADMIN_SETTINGS_ID_INT)
        return ids

    def _fetch_row(self, row_id: RowId) -> Optional[dict]:
        # '*' plutôt qu'une liste de colonnes: une table sans 'version' reste lisible
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("id", row_id)
            .maybe_single()
            .execute()
        )
        # maybe_single() renvoie None (ou data=None) quand la ligne n'existe pas
        data = getattr(res, "data", None) if res is not None else None
        return data or None

    def load(self) -> SettingsSnapshot:
        """
        Lit le singleton: id UUID d'abord (si configuré), puis id entier.
        Une erreur sur l'id UUID (ex: colonne entière) bascule sur l'id entier;
        une erreur sur l'id entier remonte à l'appelant.
        """
        ids = self._candidate_ids()
        for row_id in ids[:-1]:
            try:
                row = self._fetch_row(row_id)
            except Exception:
                logger.warning("admin.repository.load uuid lookup failed id=%s", row_id)
                continue
            if row:
                return self._snapshot(row)
        row = self._fetch_row(ids[-1])
        if row:
            return self._snapshot(row)
        return SettingsSnapshot(settings={}, version=0, row_id=None)

    def _insert(self, client, row_id: RowId, settings: Dict[str, Any]) -> SettingsSnapshot:
        try:
            res = client.table(TABLE).insert({"id": row_id, "settings": settings, "version": 1}).execute()
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                raise SettingsConflictError("Paramètres créés entre-temps") from e
            raise
        if not (res.data or []):
            raise SettingsConflictError("Paramètres créés entre-temps")
        return SettingsSnapshot(settings=settings, version=1, row_id=row_id)

    def save(self, snapshot: SettingsSnapshot, settings: Dict[str, Any]) -> SettingsSnapshot:
        """
        Écrit 'settings' si la version stockée est toujours celle de 'snapshot'.
        Lève SettingsConflictError sinon.
        - Première écriture: insertion avec l'id UUID, puis l'id entier si le type d'id est refusé.
        - Version 0: accepte aussi une ligne dont la colonne 'version' est NULL.
        """
        client = supabase_client.get_service_supabase()
        if snapshot.row_id is None:
            ids = self._candidate_ids()
            for row_id in ids[:-1]:
                try:
                    return self._insert(client, row_id, settings)
                except SettingsConflictError:
                    raise
                except Exception:
                    logger.warning("admin.repository.save uuid insert failed id=%s", row_id)
            return self._insert(client, ids[-1], settings)

        if not snapshot.versioned:
            logger.warning("admin.repository.save colonne 'version' absente, écriture non gardée id=%s", snapshot.row_id)
            res = client.table(TABLE).update({"settings": settings}).eq("id", snapshot.row_id).execute()
            if not (res.data or []):
                raise SettingsConflictError("Paramètres supprimés entre-temps")
            return SettingsSnapshot(settings=settings, version=0, row_id=snapshot.row_id, versioned=False)

        next_version = snapshot.version + 1
        query = client.table(TABLE).update({"settings": settings, "version": next_version}).eq("id", snapshot.row_id)
        if snapshot.version == 0:
            query = query.or_("version.is.null,version.eq.0")
        else:
            query = query.eq("version", snapshot.version)
        res = query.execute()
        if not (res.data or []):
            raise SettingsConflictError(f"Version {snapshot.version} périmée")
        return SettingsSnapshot(settings=settings, version=next_version, row_id=snapshot.row_id)

    @staticmethod
    def _snapshot(row: dict) -> SettingsSnapshot:
        return SettingsSnapshot(
            settings=row.get("settings") or {},
            version=int(row.get("version") or 0),
            row_id=row.get("id"),
            versioned="version" in row,
        )


class MemorySettingsStore:
    """Stockage en mémoire du process, même contrat de version que Supabase."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._lock = threading.Lock()
        self._settings: Dict[str, Any] = initial or {}
        self._version = 1 if initial else 0

    @classmethod
    def from_env(cls) -> "MemorySettingsStore":
        initial: Dict[str, Any] = {}
        if config.ADMIN_SETTINGS_JSON:
            try:
                parsed = json.loads(config.ADMIN_SETTINGS_JSON)
                if isinstance(parsed, dict):
                    initial = parsed
            except ValueError as e:
                logger.warning("admin.repository ADMIN_SETTINGS_JSON invalide: %s", e)
        return cls(initial)

    def load(self) -> SettingsSnapshot:
        with self._lock:
            row_id = "memory" if self._version else None
            return SettingsSnapshot(copy.deepcopy(self._settings), self._version, row_id)

    def save(self, snapshot: SettingsSnapshot, settings: Dict[str, Any]) -> SettingsSnapshot:
        with self._lock:
            if snapshot.version != self._version:
                raise SettingsConflictError(f"Version {snapshot.version} périmée")
            self._settings = copy.deepcopy(settings)
            self._version += 1
            return SettingsSnapshot(copy.deepcopy(settings), self._version, "memory")


_memory_store: Optional[MemorySettingsStore] = None


def get_settings_store():
    """
    Retourne l'accesseur des paramètres: Supabase si configuré, sinon mémoire (singleton).
    """
    global _memory_store
    if supabase_client.is_configured():
        return SupabaseSettingsStore()
    if _memory_store is None:
        logger.warning("Supabase non configuré; les paramètres admin ne survivront pas au process")
        _memory_store = MemorySettingsStore.from_env()
    return _memory_store


def reset_memory_store() -> None:
    global _memory_store
    _memory_store = None
