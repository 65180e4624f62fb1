"""A/B test endpoints: owner management plus the anonymous serve/report path."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Request, status
from sqlalchemy.exc import SQLAlchemyError

from linkbio.core.database import AsyncSessionDep, DatabaseDep
from linkbio.core.deadline import bounded
from linkbio.core.deps import CurrentUser
from linkbio.core.exceptions import NotFoundError
from linkbio.core.observability import record_ab_test_event
from linkbio.core.rate_limit import (
    RATE_LIMIT_API,
    RATE_LIMIT_CREATE,
    RATE_LIMIT_PUBLIC,
    RATE_LIMIT_TRACK,
    limiter,
)
from linkbio.models.ab_test import ABTestStatus
from linkbio.schemas.ab_test import (
    ABTestCreate,
    ABTestMetricsResponse,
    ABTestResponse,
    ABTestStatusUpdate,
    ActiveTestResponse,
    MetricEvent,
    MetricRecorded,
)
from linkbio.services import ab_test_service

logger = structlog.get_logger()

router = APIRouter(tags=["ab-tests"])


@router.get("/ab-tests", response_model=list[ABTestResponse])
@limiter.limit(RATE_LIMIT_API)
async def list_tests(
    request: Request,
    user: CurrentUser,
    session: AsyncSessionDep,
) -> list[ABTestResponse]:
    """List the current user's tests, most recently started first."""
    async with bounded("query"):
        tests = await ab_test_service.get_user_tests(session, user.id)
    return [ABTestResponse.model_validate(test) for test in tests]


@router.post("/ab-tests", response_model=ABTestResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_CREATE)
async def create_test(
    request: Request,
    data: ABTestCreate,
    user: CurrentUser,
    session: AsyncSessionDep,
) -> ABTestResponse:
    """Start an A/B test on one of the user's links.

    At least two variants are required, and a link can only run one active
    test at a time.
    """
    async with bounded("query"):
        test = await ab_test_service.create_test(session, user.id, data)
        await session.commit()

    logger.info(
        "A/B test created",
        test_id=str(test.id),
        link_id=str(test.link_id),
        variants=len(test.variants),
        user_id=str(user.id),
    )
    return ABTestResponse.model_validate(test)


@router.patch("/ab-tests/{test_id}", response_model=ABTestResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_test_status(
    request: Request,
    test_id: UUID,
    data: ABTestStatusUpdate,
    user: CurrentUser,
    session: AsyncSessionDep,
) -> ABTestResponse:
    async with bounded("query"):
        test = await ab_test_service.get_owned_test(session, test_id, user.id)
        test = await ab_test_service.update_status(session, test, data.status)
        await session.commit()

    logger.info("A/B test status changed", test_id=str(test_id), status=test.status)
    return ABTestResponse.model_validate(test)


@router.get("/ab-test-links/{link_id}", response_model=ActiveTestResponse)
@limiter.limit(RATE_LIMIT_PUBLIC)
async def get_active_test(
    request: Request,
    link_id: UUID,
    session: AsyncSessionDep,
) -> ActiveTestResponse:
    """The active test on a link, without its counters."""
    async with bounded("query"):
        test = await ab_test_service.get_active_test_for_link(session, link_id)
    if test is None:
        raise NotFoundError("No active A/B test for this link")
    return ActiveTestResponse.model_validate(test)


@router.post("/ab-test-metrics/{test_id}", response_model=MetricRecorded)
@limiter.limit(RATE_LIMIT_TRACK)
async def record_metric(
    request: Request,
    test_id: UUID,
    event: MetricEvent,
    database: DatabaseDep,
) -> MetricRecorded:
    """Count an impression or click reported by a visitor.

    ``success`` is false when the test is not active, the variant is not
    part of it, or the write failed.
    """
    record = (
        ab_test_service.record_click
        if event.type == "click"
        else ab_test_service.record_impression
    )
    async with bounded("query"):
        async with database.session() as session:
            try:
                recorded = await record(session, test_id, event.variant_id)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.warning(
                    "Metric write failed",
                    test_id=str(test_id),
                    type=event.type,
                    error=str(e),
                )
                record_ab_test_event(event.type, "failed")
                return MetricRecorded(success=False)

    record_ab_test_event(event.type, "recorded" if recorded else "rejected")
    return MetricRecorded(success=recorded)


@router.get("/ab-test-metrics/{test_id}", response_model=ABTestMetricsResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_metrics(
    request: Request,
    test_id: UUID,
    user: CurrentUser,
    session: AsyncSessionDep,
) -> ABTestMetricsResponse:
    """Per-variant totals and CTR; the winner is set once the test is completed."""
    async with bounded("query"):
        test = await ab_test_service.get_owned_test(session, test_id, user.id)

    metrics = ab_test_service.compute_metrics(test)
    return ABTestMetricsResponse(
        metrics=metrics,
        winner=ab_test_service.compute_winner(test, metrics),
        start_date=test.start_date,
        end_date=test.end_date,
        status=ABTestStatus(test.status),
    )
