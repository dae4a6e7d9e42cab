"""FastAPI route definitions for the short-link service.

API Endpoint Overview
=====================
::
    GET    /                          landing page
    GET    /health                    HealthResponse (200)
    POST   /api/shorten               ShortenResponse (200) or {error} 400/500
    GET    /admin                     admin login page
    GET    /admin/dashboard           admin dashboard page
    POST   /admin/api/login           {success} (200) or {error} 401
    GET    /admin/api/links           list[LinkOut] (200)
    DELETE /admin/api/links/{id}      {success} (200) or {error} 404
    GET    /{slug}[?preview=1]        302 redirect, text page, or 404 page

Key Behaviours
===============
- ``/{slug}`` is registered last so fixed paths win.
- Deleting a link invalidates its cache entry in the same request.
- Errors from the service layer propagate to the application's exception
  handlers, which answer with ``{"error": message}``.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from shortlink.allocator import SlugAllocator
from shortlink.dependencies import (
    RequestContext,
    get_redirect_resolver,
    get_request_context,
    get_slug_allocator,
)
from shortlink.enums import HealthStatus, ResolutionKind
from shortlink.exceptions import InvalidCredentials, LinkNotFound
from shortlink.rendering import (
    render_admin_dashboard_page,
    render_admin_login_page,
    render_landing_page,
    render_not_found_page,
)
from shortlink.resolver import RedirectResolver
from shortlink.schemas import (
    ErrorResponse,
    HealthResponse,
    LinkOut,
    LoginRequest,
    ShortenRequest,
    ShortenResponse,
    SuccessResponse,
)

__all__ = ["router"]

router = APIRouter()


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def landing_page(ctx: RequestContext = Depends(get_request_context)) -> HTMLResponse:
    return HTMLResponse(render_landing_page(ctx.settings.APP_NAME))


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY

    try:
        await ctx.store.ping()
        ctx.logger.debug("Store health check passed")
    except Exception as e:
        ctx.logger.error(f"Store health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    return HealthResponse(
        status=db_status,
        database=db_status,
        cache=HealthStatus.HEALTHY,
        cache_entries=ctx.cache.stats()["size"],
    )


@router.post(
    "/api/shorten",
    response_model=ShortenResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["links"],
)
async def shorten(
    payload: ShortenRequest,
    ctx: RequestContext = Depends(get_request_context),
    allocator: SlugAllocator = Depends(get_slug_allocator),
) -> ShortenResponse:
    ctx.add_tag("link_creation")
    ctx.logger.info(
        "Link creation requested",
        extra={"operation": "create_link", "custom_slug": payload.slug, "use_ai": payload.use_ai},
    )

    created = await allocator.create_link(payload.content, slug=payload.slug, use_ai=payload.use_ai)

    ctx.logger.info(
        f"Link created: {created.record.slug}",
        extra={
            "operation": "create_link",
            "slug": created.record.slug,
            "link_id": created.record.id,
            "duration_ms": ctx.get_duration(),
        },
    )
    return ShortenResponse(
        short_url=ctx.short_url(created.record.slug),
        slug=created.record.slug,
        is_ai=created.is_ai,
    )


@router.get("/admin", response_class=HTMLResponse, include_in_schema=False)
async def admin_login_page(ctx: RequestContext = Depends(get_request_context)) -> HTMLResponse:
    return HTMLResponse(render_admin_login_page(ctx.settings.APP_NAME))


@router.get("/admin/dashboard", response_class=HTMLResponse, include_in_schema=False)
async def admin_dashboard_page(ctx: RequestContext = Depends(get_request_context)) -> HTMLResponse:
    return HTMLResponse(render_admin_dashboard_page(ctx.settings.APP_NAME))


@router.post(
    "/admin/api/login",
    response_model=SuccessResponse,
    responses={401: {"model": ErrorResponse}},
    tags=["admin"],
)
async def admin_login(payload: LoginRequest, ctx: RequestContext = Depends(get_request_context)) -> SuccessResponse:
    if not ctx.service_manager.verifier.verify(payload.password):
        ctx.logger.warning("Admin login rejected", extra={"operation": "admin_login"})
        raise InvalidCredentials("Incorrect password")
    ctx.logger.info("Admin login accepted", extra={"operation": "admin_login"})
    return SuccessResponse()


@router.get("/admin/api/links", response_model=list[LinkOut], tags=["admin"])
async def list_links(
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    ctx: RequestContext = Depends(get_request_context),
) -> list[LinkOut]:
    records = await ctx.store.list_all(newest_first=True, limit=limit, offset=offset)
    return [LinkOut.model_validate(record) for record in records]


@router.delete(
    "/admin/api/links/{link_id}",
    response_model=SuccessResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["admin"],
)
async def delete_link(link_id: int, ctx: RequestContext = Depends(get_request_context)) -> SuccessResponse:
    record = await ctx.store.delete_by_id(link_id)
    if record is None:
        raise LinkNotFound(f"Link {link_id} not found")
    ctx.cache.delete(record.slug)

    ctx.logger.info(
        f"Link deleted: {record.slug}",
        extra={"operation": "delete_link", "link_id": link_id, "slug": record.slug},
    )
    return SuccessResponse()


@router.get("/{slug}", tags=["redirect"], response_model=None)
async def resolve_slug(
    slug: str,
    preview: bool = Query(False),
    ctx: RequestContext = Depends(get_request_context),
    resolver: RedirectResolver = Depends(get_redirect_resolver),
) -> RedirectResponse | HTMLResponse:
    ctx.add_tag("redirect")

    try:
        resolution = await resolver.resolve(slug, preview=preview)
    except LinkNotFound:
        ctx.logger.warning(
            f"Slug not found: {slug}",
            extra={"operation": "resolve", "slug": slug, "duration_ms": ctx.get_duration()},
        )
        return HTMLResponse(render_not_found_page(slug), status_code=404)

    ctx.logger.info(
        f"Resolved {slug} as {resolution.kind}",
        extra={
            "operation": "resolve",
            "slug": slug,
            "cache": resolution.cache_status,
            "duration_ms": ctx.get_duration(),
        },
    )

    if resolution.kind is ResolutionKind.REDIRECT:
        return RedirectResponse(url=resolution.record.target, status_code=302)
    return HTMLResponse(resolution.body)
