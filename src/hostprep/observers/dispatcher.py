# src/hostprep/observers/dispatcher.py
from __future__ import annotations
import logging
from typing import List, Optional
from .events import BaseEvent

log = logging.getLogger("hostprep")

class EventBus:
    def __init__(self, observers: Optional[List] = None):
        self._observers = list(observers or [])

    def subscribe(self, observer) -> None:
        self._observers.append(observer)

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception:
                # observers must not break a provisioning run
                log.exception(f"observer {ob.__class__.__name__} failed on {event.__class__.__name__}")
