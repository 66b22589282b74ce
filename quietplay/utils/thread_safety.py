#!/usr/bin/env python3
"""
🔐 Thread-Safe Configuration Management for QuietPlay
Provides thread-safe config operations to prevent race conditions between:
- Flask request handlers (waitress worker threads)
- The playback tick thread reacting to settings/schedule changes
"""

import copy
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class ConfigTransaction:
    """Represents a configuration transaction with rollback capability."""
    original_config: Dict[str, Any]
    new_config: Dict[str, Any]
    timestamp: float
    thread_id: str
    operation: str

class ThreadSafeConfigManager:
    """
    Thread-safe configuration manager.

    Features:
    - Read-write lock so concurrent readers never see a half-written save
    - Transaction support with rollback
    - Change notifications for components (the playback engine listens)
    - Short-lived cache to avoid re-reading the file on every request
    """

    def __init__(self, base_config_manager):
        """
        Initialize thread-safe wrapper around existing config manager.

        Args:
            base_config_manager: The underlying ConfigManager instance
        """
        self._base_manager = base_config_manager
        self._lock = threading.RLock()
        self._read_write_lock = ReadWriteLock()
        self._transaction_lock = threading.RLock()
        self._config_cache: Optional[Dict[str, Any]] = None
        self._cache_timestamp: float = 0
        self._cache_ttl: float = 1.0
        self._change_listeners: list[Callable[[Dict[str, Any]], None]] = []
        self._transaction_history: list[ConfigTransaction] = []
        self._max_history: int = 10
        self._logger = logging.getLogger('thread_safe_config')

    @property
    def base_manager(self):
        return self._base_manager

    def add_change_listener(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """Add a callback to be notified with the new config when it changes."""
        with self._lock:
            self._change_listeners.append(callback)
            self._logger.debug(f"📢 Added config change listener: {getattr(callback, '__name__', callback)}")

    def _notify_listeners(self, new_config: Dict[str, Any]) -> None:
        with self._lock:
            listeners = list(self._change_listeners)
        for listener in listeners:
            try:
                listener(copy.deepcopy(new_config))
            except Exception as e:
                self._logger.error(f"❌ Error in config change listener {getattr(listener, '__name__', listener)}: {e}")

    def _is_cache_valid(self) -> bool:
        return (
            self._config_cache is not None and
            time.time() - self._cache_timestamp < self._cache_ttl
        )

    def _update_cache(self, config: Dict[str, Any]) -> None:
        self._config_cache = copy.deepcopy(config)
        self._cache_timestamp = time.time()

    def load_config(self, use_cache: bool = True) -> Dict[str, Any]:
        """
        Load configuration with thread-safe caching.

        Returns:
            Configuration dictionary (deep copy for thread safety)
        """
        with self._read_write_lock.read_lock():
            with self._lock:
                if use_cache and self._is_cache_valid():
                    return copy.deepcopy(self._config_cache)
            config = self._base_manager.load_config()
            with self._lock:
                self._update_cache(config)
            return copy.deepcopy(config)

    def save_config(self, config: Dict[str, Any], notify_listeners: bool = True) -> bool:
        """
        Save configuration with thread-safe operations.

        Returns:
            True if saved successfully
        """
        thread_id = threading.current_thread().name

        with self._read_write_lock.write_lock():
            original_config = self.load_config(use_cache=False)
            success = self._base_manager.save_config(config)
            if not success:
                self._logger.error(f"❌ Config save failed for {thread_id}")
                return False

            # Re-read so the cache holds exactly what validation produced
            saved = self._base_manager.load_config()
            with self._lock:
                self._update_cache(saved)
                self._transaction_history.append(ConfigTransaction(
                    original_config=original_config,
                    new_config=copy.deepcopy(saved),
                    timestamp=time.time(),
                    thread_id=thread_id,
                    operation=f"save_from_{thread_id}",
                ))
                if len(self._transaction_history) > self._max_history:
                    self._transaction_history.pop(0)

        self._logger.info(f"✅ Config saved successfully by {thread_id}")
        if notify_listeners:
            self._notify_listeners(saved)
        return True

    @contextmanager
    def config_transaction(self):
        """
        Context manager for atomic config operations.

        Usage:
            with config_manager.config_transaction() as transaction:
                config = transaction.load()
                config['schedules'].append(entry)
                transaction.save(config)
                # Rolled back on exception

        Transactions run one at a time so two read-modify-write cycles never
        interleave.
        """
        with self._transaction_lock:
            transaction = ConfigTransactionContext(self)
            try:
                yield transaction
            except Exception as e:
                self._logger.error(f"❌ Transaction failed, rolling back: {e}")
                transaction.rollback()
                raise

    def invalidate_cache(self) -> None:
        """Force invalidation of the cache."""
        with self._lock:
            self._config_cache = None
            self._cache_timestamp = 0

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "cache_valid": self._is_cache_valid(),
                "transaction_history_count": len(self._transaction_history),
                "change_listeners_count": len(self._change_listeners),
                "active_threads": threading.active_count(),
            }

class ConfigTransactionContext:
    """Context for atomic configuration transactions."""

    def __init__(self, config_manager: ThreadSafeConfigManager):
        self._config_manager = config_manager
        self._original_config: Optional[Dict[str, Any]] = None
        self._saved: bool = False

    def load(self) -> Dict[str, Any]:
        config = self._config_manager.load_config(use_cache=False)
        if self._original_config is None:
            self._original_config = copy.deepcopy(config)
        return config

    def save(self, config: Dict[str, Any]) -> bool:
        ok = self._config_manager.save_config(config)
        self._saved = self._saved or ok
        return ok

    def rollback(self) -> bool:
        """Restore the config seen by the first load, if anything was saved."""
        if self._saved and self._original_config is not None:
            return self._config_manager.save_config(self._original_config)
        return False

class ReadWriteLock:
    """
    Reader-writer lock implementation for optimized concurrent access.
    Allows multiple readers OR one writer (but not both simultaneously).
    """

    def __init__(self):
        self._read_ready = threading.Condition(threading.RLock())
        self._readers = 0

    @contextmanager
    def read_lock(self):
        with self._read_ready:
            self._readers += 1
        try:
            yield
        finally:
            with self._read_ready:
                self._readers -= 1
                if self._readers == 0:
                    self._read_ready.notify_all()

    @contextmanager
    def write_lock(self):
        with self._read_ready:
            while self._readers > 0:
                self._read_ready.wait()
            yield

# Global thread-safe config manager
_thread_safe_config_manager: Optional[ThreadSafeConfigManager] = None

def initialize_thread_safe_config(base_config_manager) -> None:
    """Initialize the global thread-safe config manager."""
    global _thread_safe_config_manager
    _thread_safe_config_manager = ThreadSafeConfigManager(base_config_manager)

def get_thread_safe_config_manager() -> ThreadSafeConfigManager:
    """Get the global thread-safe config manager."""
    if _thread_safe_config_manager is None:
        raise RuntimeError("Thread-safe config manager not initialized. Call initialize_thread_safe_config() first.")
    return _thread_safe_config_manager

def load_config_safe() -> Dict[str, Any]:
    return get_thread_safe_config_manager().load_config()

def save_config_safe(config: Dict[str, Any]) -> bool:
    return get_thread_safe_config_manager().save_config(config)

def config_transaction():
    """Get a config transaction context manager."""
    return get_thread_safe_config_manager().config_transaction()

def invalidate_config_cache() -> None:
    get_thread_safe_config_manager().invalidate_cache()

def get_config_stats() -> Dict[str, Any]:
    return get_thread_safe_config_manager().get_stats()
