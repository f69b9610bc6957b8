"""Widget Hub - Main Application Entry Point.

Hosts the widget registry, the real-time widget communication system, the
behavioral analytics engine and the LLM recommendations relay, built on the
Neuroglia framework with CQRS and Clean Architecture.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from neuroglia.data.infrastructure.mongo import MotorRepository
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_ingestor import CloudEventIngestor
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_middleware import CloudEventMiddleware
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublisher
from neuroglia.hosting.web import SubAppConfig, WebApplicationBuilder
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.observability import Observability
from neuroglia.serialization.json import JsonSerializer

from application.services import (
    BehavioralAnalyticsEngine,
    WidgetCommunicationService,
    WidgetComponentCatalog,
    WidgetEventBus,
    WidgetMetricsTracker,
    WidgetOperationProjector,
)
from application.settings import app_settings, configure_logging

# Domain entities (aggregates)
from domain.entities import BehavioralProfile, WidgetDefinition, WidgetInstance

# Domain repository interfaces
from domain.repositories import (
    BehavioralProfileRepository,
    WidgetConnectionDtoRepository,
    WidgetDefinitionRepository,
    WidgetInstanceRepository,
    WidgetMessageDtoRepository,
)

# Infrastructure
from infrastructure.adapters import ChatCompletionClient

# Integration layer - read models and Motor repository implementations
from integration.models import WidgetConnectionDto, WidgetMessageDto
from integration.repositories import (
    MotorBehavioralProfileRepository,
    MotorWidgetConnectionDtoRepository,
    MotorWidgetDefinitionRepository,
    MotorWidgetInstanceRepository,
    MotorWidgetMessageDtoRepository,
)

configure_logging(log_level=app_settings.log_level)
log = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the Widget Hub application.

    Returns:
        Configured FastAPI application with the API mounted under /api
    """
    log.debug("🚀 Creating Widget Hub application...")

    builder = WebApplicationBuilder(app_settings=app_settings)

    # Configure core Neuroglia services
    Mediator.configure(
        builder,
        [
            "application.commands",
            "application.queries",
            "application.events.integration",
        ],
    )
    Mapper.configure(
        builder,
        [
            "application.commands",
            "application.queries",
            "integration.models",
        ],
    )
    JsonSerializer.configure(
        builder,
        [
            "domain.entities",
            "domain.models",
            "integration.models",
        ],
    )
    CloudEventPublisher.configure(builder)
    CloudEventIngestor.configure(builder, [])
    Observability.configure(builder)

    # ==========================================================================
    # Repository Configuration (MongoDB via MotorRepository)
    # ==========================================================================
    # Aggregates are stored as state documents; the communication system keeps
    # its live state in memory and mirrors connections and messages to read models.
    #
    _configure_repositories(builder)

    # Application services
    WidgetEventBus.configure(builder)
    WidgetCommunicationService.configure(builder)
    WidgetComponentCatalog.configure(builder)
    WidgetMetricsTracker.configure(builder)
    WidgetOperationProjector.configure(builder)
    BehavioralAnalyticsEngine.configure(builder)

    # Outbound adapters
    ChatCompletionClient.configure(builder)

    builder.add_sub_app(
        SubAppConfig(
            path="/api",
            name="api",
            title=f"{app_settings.app_name} API",
            description="Widget registry, widget communication, behavioral analytics and recommendations",
            version=app_settings.app_version,
            controllers=["api.controllers"],
            docs_url="/docs",
        )
    )

    # Build the application
    app = builder.build_app_with_lifespan(
        title="Widget Hub",
        description="Dashboard widget platform",
        version=app_settings.app_version,
        debug=app_settings.debug,
    )

    # Configure middlewares
    app.add_middleware(CloudEventMiddleware, service_provider=app.state.services)

    if app_settings.enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    _configure_health_endpoints(app)

    log.info("✅ Widget Hub application created successfully!")
    log.info(f"   - API Docs: http://localhost:{app_settings.app_port}/api/docs")
    return app


def _configure_repositories(builder: WebApplicationBuilder) -> None:
    MotorRepository.configure(
        builder,
        entity_type=WidgetDefinition,
        key_type=str,
        database_name=app_settings.database_name,
        collection_name="widget_definitions",
        domain_repository_type=WidgetDefinitionRepository,
        implementation_type=MotorWidgetDefinitionRepository,
    )
    MotorRepository.configure(
        builder,
        entity_type=WidgetInstance,
        key_type=str,
        database_name=app_settings.database_name,
        collection_name="widget_instances",
        domain_repository_type=WidgetInstanceRepository,
        implementation_type=MotorWidgetInstanceRepository,
    )
    MotorRepository.configure(
        builder,
        entity_type=BehavioralProfile,
        key_type=str,
        database_name=app_settings.database_name,
        collection_name="behavioral_profiles",
        domain_repository_type=BehavioralProfileRepository,
        implementation_type=MotorBehavioralProfileRepository,
    )
    MotorRepository.configure(
        builder,
        entity_type=WidgetConnectionDto,
        key_type=str,
        database_name=app_settings.database_name,
        collection_name="widget_connections",
        domain_repository_type=WidgetConnectionDtoRepository,
        implementation_type=MotorWidgetConnectionDtoRepository,
    )
    MotorRepository.configure(
        builder,
        entity_type=WidgetMessageDto,
        key_type=str,
        database_name=app_settings.database_name,
        collection_name="widget_messages",
        domain_repository_type=WidgetMessageDtoRepository,
        implementation_type=MotorWidgetMessageDtoRepository,
    )


def _configure_health_endpoints(app: FastAPI) -> None:
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Basic health check."""
        return {"status": "healthy", "service": "widget-hub"}

    @app.get("/health/ready", tags=["Health"])
    async def readiness_check():
        """Readiness check including the communication system."""
        service = app.state.services.get_required_service(WidgetCommunicationService)
        return {
            "status": "ready",
            "checks": {
                "service": "ready",
                "registered_widgets": len(service.get_registered_widgets()),
            },
        }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:create_app",
        factory=True,
        host=app_settings.app_host,
        port=app_settings.app_port,
        reload=app_settings.debug,
    )
