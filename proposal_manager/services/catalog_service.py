"""
Catalog service - services with their plans.

The catalog is reference data: read on every builder screen, changed only by
seeding. Listings go through the Redis cache; seeding invalidates it.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List

from flask import current_app

from proposal_manager.models import Service, ServicePlan
from proposal_manager.services.cache_service import get_cache
from proposal_manager.services.record_store import RecordStore

logger = logging.getLogger(__name__)

CACHE_MODULE = 'catalog'


# name, category, description, plans: (plan_name, monthly_fee, setup_fee, deliverables, days)
DEFAULT_CATALOG = [
    ('Gestão de Tráfego Pago', 'Marketing', 'Campanhas no Google Ads e Meta Ads com otimização contínua.', [
        ('Essencial', '1200.00', '0.00', 'Até 2 campanhas ativas, relatório mensal.', 0),
        ('Performance', '2200.00', '500.00', 'Até 6 campanhas, testes A/B, relatório quinzenal.', 7),
    ]),
    ('Social Media', 'Marketing', 'Planejamento e produção de conteúdo para redes sociais.', [
        ('Starter', '900.00', '0.00', '12 posts por mês, calendário editorial.', 0),
        ('Pro', '1600.00', '0.00', '20 posts e 8 stories por mês, copy e design.', 0),
    ]),
    ('Site Institucional', 'Tecnologia', 'Site responsivo com foco em conversão.', [
        ('Landing Page', '0.00', '2500.00', 'Página única, formulário de contato, SEO básico.', 15),
        ('Site Completo', '150.00', '6500.00', 'Até 8 páginas, blog, hospedagem e manutenção.', 30),
    ]),
    ('Identidade Visual', 'Design', 'Criação de marca e manual de identidade.', [
        ('Logo', '0.00', '1800.00', 'Logotipo, paleta de cores e tipografia.', 10),
    ]),
]


def _load_catalog(store: RecordStore) -> List[Dict[str, Any]]:
    return [service.to_dict(with_plans=True) for service in store.select('services', order_by='name')]


def list_catalog(store: RecordStore) -> List[Dict[str, Any]]:
    """Services ordered by name, each with its plans."""
    ttl = current_app.config.get('CACHE_CATALOG_TTL', 300)
    return get_cache().memoize(CACHE_MODULE, 'services', lambda: _load_catalog(store), ttl=ttl)


def get_plan(store: RecordStore, plan_id: int) -> ServicePlan:
    return store.get('service_plans', plan_id)


def seed_catalog(session, catalog=None) -> int:
    """
    Insert the catalog entries whose service name does not exist yet.

    Returns:
        Number of services created
    """
    created = 0
    for name, category, description, plans in (catalog or DEFAULT_CATALOG):
        if session.query(Service).filter_by(name=name).first():
            continue
        service = Service(name=name, category=category, description=description)
        for plan_name, monthly, setup, deliverables, days in plans:
            service.plans.append(ServicePlan(
                plan_name=plan_name,
                monthly_fee=Decimal(monthly),
                setup_fee=Decimal(setup),
                deliverables=deliverables,
                delivery_time_days=days,
            ))
        session.add(service)
        created += 1

    session.commit()
    get_cache().invalidate_module(CACHE_MODULE)
    logger.info(f"Catalog seeded: {created} services created")
    return created
