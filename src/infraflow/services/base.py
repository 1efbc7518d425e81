"""BaseService — foundation for the facade services.

Every facade receives the unified :class:`InfraSettings` at construction
and builds its engine from the relevant config section.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from infraflow.config.settings import InfraSettings


class BaseService:
    """Base for ServiceResult-returning facades.

    Usage::

        class LayoutService(BaseService):
            def layout(self, spec: Specification) -> ServiceResult:
                engine = LayoutEngine(self._settings.layout)
                ...
    """

    def __init__(self, settings: InfraSettings | None = None) -> None:
        if settings is None:
            from infraflow.config.settings import InfraSettings

            settings = InfraSettings()
        self._settings = settings

    @property
    def settings(self) -> InfraSettings:
        return self._settings
