"""
Record store - generic persistence over the SQLAlchemy session.

Every write is committed immediately (no batching). Failures roll the session
back and surface as StoreError carrying a human-readable message, so callers
can report them without leaving a half-applied unit of work behind.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from proposal_manager.models import Client, Service, ServicePlan, Proposal, ProposalItem
from proposal_manager.exceptions import StoreError, NotFoundError, ConflictError

logger = logging.getLogger(__name__)


TABLES = {
    'clients': Client,
    'services': Service,
    'service_plans': ServicePlan,
    'proposals': Proposal,
    'proposal_items': ProposalItem,
}


class RecordStore:
    """Table-addressed CRUD facade: select / get / insert / update / delete."""

    def __init__(self, session: Session):
        self.session = session

    def _model(self, table: str):
        model = TABLES.get(table)
        if model is None:
            raise StoreError(f'Tabela desconhecida: {table}', table)
        return model

    def _fail(self, table: str, action: str, error: Exception):
        self.session.rollback()
        detail = getattr(error, 'orig', None) or error
        logger.error(f"[STORE] {action} on {table} failed: {detail}")
        raise StoreError(f'Erro ao {action} ({table}): {detail}', table) from error

    def select(self, table: str, order_by: Optional[str] = None, **filters) -> List[Any]:
        """
        Return rows matching equality filters.

        Args:
            table: Table name (see TABLES)
            order_by: Column name, prefixed with '-' for descending order
            **filters: column=value equality filters
        """
        model = self._model(table)
        try:
            query = self.session.query(model).filter_by(**filters)
            if order_by:
                column = getattr(model, order_by.lstrip('-'), None)
                if column is None:
                    raise StoreError(f'Coluna desconhecida: {order_by}', table)
                query = query.order_by(column.desc() if order_by.startswith('-') else column)
            return query.all()
        except SQLAlchemyError as e:
            self._fail(table, 'consultar', e)

    def get(self, table: str, record_id: Any) -> Any:
        """Return a single row by primary key or raise NotFoundError."""
        model = self._model(table)
        try:
            record = self.session.get(model, record_id)
        except SQLAlchemyError as e:
            self._fail(table, 'consultar', e)
        if record is None:
            raise NotFoundError(f'Registro {record_id} não encontrado em {table}.')
        return record

    def insert(self, table: str, row: Dict[str, Any]) -> Any:
        """Insert a row and return the persisted record."""
        model = self._model(table)
        try:
            record = model(**row)
        except TypeError as e:
            raise StoreError(f'Dados inválidos para {table}: {e}', table) from e

        try:
            self.session.add(record)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail(table, 'inserir', e)
        return record

    def update(self, table: str, record_id: Any, patch: Dict[str, Any],
               expected_version: Optional[int] = None) -> Any:
        """
        Apply a partial update and return the updated record.

        When expected_version is given the update only succeeds if the stored
        version still matches; otherwise ConflictError is raised and nothing
        is written.
        """
        model = self._model(table)
        record = self.get(table, record_id)

        if expected_version is not None:
            current_version = getattr(record, 'version', None)
            if current_version is None:
                raise StoreError(f'{table} não suporta controle de versão.', table)
            if current_version != expected_version:
                raise ConflictError(
                    'O registro foi alterado por outra pessoa. Recarregue e tente novamente.',
                    payload={'expected_version': expected_version, 'current_version': current_version}
                )

        for key, value in patch.items():
            if key in ('id', 'version') or not hasattr(model, key):
                self.session.rollback()
                raise StoreError(f'Coluna desconhecida: {key}', table)
            setattr(record, key, value)

        try:
            self.session.commit()
        except StaleDataError as e:
            self.session.rollback()
            logger.warning(f"[STORE] Concurrent update detected on {table} {record_id}")
            raise ConflictError(
                'O registro foi alterado por outra pessoa. Recarregue e tente novamente.'
            ) from e
        except SQLAlchemyError as e:
            self._fail(table, 'atualizar', e)
        return record

    def delete(self, table: str, record_id: Any) -> None:
        """Delete a row by primary key."""
        record = self.get(table, record_id)
        try:
            self.session.delete(record)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail(table, 'remover', e)

    def delete_where(self, table: str, **filters) -> int:
        """Delete every row matching equality filters; returns how many were removed."""
        if not filters:
            raise StoreError('Remoção sem filtro não permitida.', table)
        records = self.select(table, **filters)
        try:
            for record in records:
                self.session.delete(record)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail(table, 'remover', e)
        return len(records)
