"""
Route Optimization Service

Turns a batch's orders into one delivery route per zone:
- orders are grouped by zone (classified on the fly if missing)
- each group gets a 1..k delivery sequence
- distance/time come from a pluggable estimator

Sequencing is stable insertion order, not a shortest-path solver. The default
estimator is linear in the number of stops.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Protocol, Sequence
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from dispatch.core.config import settings
from dispatch.crud.activity import log_activity
from dispatch.models.optimized_route import OptimizedRoute, RouteStatus
from dispatch.models.order import Order
from dispatch.models.route_batch import RouteBatch, BatchStatus
from dispatch.services.routing.batch_manager import mark_optimized
from dispatch.services.routing.errors import InvalidTransitionError, NotFoundError
from dispatch.services.routing.zone_classifier import ZonePartitions, classify, load_zone_directory

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteEstimate:
    distance_miles: float
    minutes: int


class RouteEstimator(Protocol):
    def estimate(self, orders: Sequence[Order]) -> RouteEstimate:
        ...


class LinearRouteEstimator:
    """Fixed mileage and minutes per stop"""

    def __init__(self, miles_per_order: Optional[float] = None, minutes_per_order: Optional[int] = None):
        self.miles_per_order = settings.miles_per_order if miles_per_order is None else miles_per_order
        self.minutes_per_order = settings.minutes_per_order if minutes_per_order is None else minutes_per_order

    def estimate(self, orders: Sequence[Order]) -> RouteEstimate:
        stops = len(orders)
        return RouteEstimate(
            distance_miles=round(stops * self.miles_per_order, 2),
            minutes=stops * self.minutes_per_order,
        )


def sequence_orders(orders: Sequence[Order]) -> List[Order]:
    """
    Stable delivery order for one zone.

    Orders sequenced by an earlier run keep their relative positions; newly
    added orders follow in the order they were created.
    """
    return sorted(
        orders,
        key=lambda o: (
            o.route_sequence is None,
            o.route_sequence or 0,
            o.created_at or datetime.min,
            o.order_number,
        ),
    )


class RouteOptimizer:
    """Builds per-zone routes for a batch"""

    def __init__(
        self,
        db: AsyncSession,
        estimator: Optional[RouteEstimator] = None,
        partitions: Optional[ZonePartitions] = None,
    ):
        self.db = db
        self.estimator = estimator or LinearRouteEstimator()
        self.partitions = partitions

    async def optimize_batch(self, batch_id: str, tenant_id: int, actor_id: str = None) -> List[OptimizedRoute]:
        """
        Optimize a batch in one transaction.

        Any failure rolls back every route and sequence write before the
        error reaches the caller, so a retry starts from a clean state.
        """
        try:
            routes = await self._optimize(batch_id, tenant_id, actor_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            log.warning("optimize rolled back: tenant=%s batch=%s", tenant_id, batch_id)
            raise
        return routes

    async def _lock_batch(self, batch_id: str, tenant_id: int) -> RouteBatch:
        # Row lock holds off concurrent order inserts (they bump order_count on this row)
        result = await self.db.execute(
            select(RouteBatch)
            .where(RouteBatch.id == batch_id, RouteBatch.tenant_id == tenant_id)
            .with_for_update()
        )
        batch = result.scalar_one_or_none()
        if not batch:
            raise NotFoundError(f"Batch {batch_id} not found")
        if batch.status == BatchStatus.COMPLETED.value:
            raise InvalidTransitionError(f"Batch {batch_id} is completed and cannot be re-optimized")
        return batch

    async def _group_by_zone(self, orders: Sequence[Order], tenant_id: int) -> Dict[str, List[Order]]:
        directory = None
        groups: Dict[str, List[Order]] = {}

        for order in orders:
            if order.zone_id is None:
                if directory is None:
                    directory = await load_zone_directory(self.db, tenant_id)
                order.zone_id = classify(
                    order.delivery_state,
                    order.coordinates,
                    directory=directory,
                    partitions=self.partitions,
                )
                if order.zone_id is None:
                    log.warning("order %s has no zone, skipped (no zones configured?)", order.order_number)
                    continue
            groups.setdefault(order.zone_id, []).append(order)

        return groups

    async def _optimize(self, batch_id: str, tenant_id: int, actor_id: str = None) -> List[OptimizedRoute]:
        batch = await self._lock_batch(batch_id, tenant_id)

        result = await self.db.execute(
            select(Order)
            .where(
                Order.batch_id == batch.id,
                Order.tenant_id == tenant_id,
                Order.voided_at.is_(None)
            )
            .order_by(Order.created_at, Order.order_number)
        )
        orders = result.scalars().all()
        groups = await self._group_by_zone(orders, tenant_id)

        result = await self.db.execute(
            select(OptimizedRoute).where(OptimizedRoute.batch_id == batch.id)
        )
        existing = {route.zone_id: route for route in result.scalars().all()}

        routes = []
        for zone_id, zone_orders in groups.items():
            route_data = []
            sequenced = sequence_orders(zone_orders)
            for sequence, order in enumerate(sequenced, start=1):
                order.route_sequence = sequence
                route_data.append({
                    "order_id": order.id,
                    "sequence": sequence,
                    "address": order.delivery_address,
                })

            estimate = self.estimator.estimate(sequenced)

            # Upsert by (batch, zone); an assigned route keeps its driver and status
            route = existing.pop(zone_id, None)
            if route is None:
                route = OptimizedRoute(
                    id=str(uuid.uuid4()),
                    batch_id=batch.id,
                    zone_id=zone_id,
                    tenant_id=tenant_id,
                    status=RouteStatus.PENDING.value,
                )
                self.db.add(route)

            route.route_data = route_data
            route.estimated_distance = Decimal(str(estimate.distance_miles))
            route.estimated_time = estimate.minutes
            routes.append(route)

        # Zones that lost all their orders (voids)
        for zone_id, stale in existing.items():
            if stale.status == RouteStatus.PENDING.value:
                await self.db.delete(stale)
            else:
                log.warning(
                    "route %s for zone %s is %s but has no orders left",
                    stale.id, zone_id, stale.status,
                )

        mark_optimized(batch)
        await log_activity(
            self.db,
            tenant_id,
            "BATCH_OPTIMIZED",
            f"Optimized batch {batch.batch_date} into {len(routes)} route(s)",
            actor_id=actor_id,
            details={"batch_id": batch.id, "order_count": len(orders), "route_count": len(routes)},
        )
        await self.db.flush()

        log.info(
            "optimize: tenant=%s batch=%s orders=%s routes=%s",
            tenant_id, batch.id, len(orders), len(routes),
        )
        return routes


async def optimize_batch(db: AsyncSession, batch_id: str, tenant_id: int, actor_id: str = None):
    return await RouteOptimizer(db).optimize_batch(batch_id, tenant_id, actor_id=actor_id)
