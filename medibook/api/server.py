"""
Booking API Server.

A FastAPI application exposing the patient-facing booking endpoints.
Every response uses the ``{"success": bool, "message": ...}`` envelope
the web client expects.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from medibook.api.dependencies import (
    Services,
    build_services,
    create_store,
    get_services,
    require_user,
)
from medibook.config import configure_logging, get_settings
from medibook.errors import MediBookError
from medibook.models import BookingRequest, CancelRequest, OrderRequest, PaymentVerification

# ============================================================================
# Request Models
# ============================================================================


class RegisterRequest(BaseModel):
    """Request body for creating an account."""

    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    """Request body for logging in."""

    email: str = ""
    password: str = ""


# ============================================================================
# Application
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings.log_level)

    # Startup
    logger.info("Starting Booking API Server")
    owns_services = getattr(app.state, "services", None) is None
    if owns_services:
        store = await create_store(settings)
        app.state.services = build_services(settings, store)
    yield
    # Shutdown
    logger.info("Shutting down Booking API Server")
    if owns_services:
        await app.state.services.store.close()
        app.state.services = None


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Pre-built services, used by tests. When omitted they are
            created from settings at startup.
    """
    app = FastAPI(
        title="MediBook Booking API",
        description="API for booking and paying for doctor appointments",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS middleware for the browser client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MediBookError)
    async def booking_error_handler(request: Request, exc: MediBookError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Missing Details"},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": str(exc)},
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    register_user_routes(app)
    return app


# ============================================================================
# API Endpoints
# ============================================================================


def register_user_routes(app: FastAPI) -> None:
    prefix = "/api/user"

    @app.post(f"{prefix}/register")
    async def register(body: RegisterRequest, services: Services = Depends(get_services)):
        token = await services.users.register(body.name, body.email, body.password)
        return {"success": True, "token": token}

    @app.post(f"{prefix}/login")
    async def login(body: LoginRequest, services: Services = Depends(get_services)):
        token = await services.users.login(body.email, body.password)
        return {"success": True, "token": token}

    @app.get(f"{prefix}/get-profile")
    async def get_profile(
        user_id: str = Depends(require_user),
        services: Services = Depends(get_services),
    ):
        user_data = await services.users.get_profile(user_id)
        return {"success": True, "userData": user_data}

    @app.post(f"{prefix}/update-profile")
    async def update_profile(
        name: Optional[str] = Form(default=None),
        phone: Optional[str] = Form(default=None),
        address: Optional[str] = Form(default=None),
        dob: Optional[str] = Form(default=None),
        gender: Optional[str] = Form(default=None),
        image: Optional[UploadFile] = File(default=None),
        user_id: str = Depends(require_user),
        services: Services = Depends(get_services),
    ):
        upload = None
        if image is not None and image.filename:
            upload = (await image.read(), image.filename)

        await services.users.update_profile(
            user_id, name, phone, address, dob, gender, image=upload
        )
        return {"success": True, "message": "Profile Updated"}

    @app.post(f"{prefix}/book-appointment")
    async def book_appointment(
        body: BookingRequest,
        user_id: str = Depends(require_user),
        services: Services = Depends(get_services),
    ):
        appointment = await services.appointments.book(
            user_id, body.doc_id, body.slot_date, body.slot_time
        )
        return {
            "success": True,
            "message": "Appointment Booked",
            "appointmentId": appointment.id,
        }

    @app.get(f"{prefix}/appointments")
    async def list_appointments(
        user_id: str = Depends(require_user),
        services: Services = Depends(get_services),
    ):
        appointments = await services.appointments.list(user_id)
        return {
            "success": True,
            "appointments": [a.model_dump() for a in appointments],
        }

    @app.post(f"{prefix}/cancel-appointment")
    async def cancel_appointment(
        body: CancelRequest,
        user_id: str = Depends(require_user),
        services: Services = Depends(get_services),
    ):
        await services.appointments.cancel(user_id, body.appointment_id)
        return {"success": True, "message": "Appointment Cancelled"}

    @app.post(f"{prefix}/payment-razorpay")
    async def payment_razorpay(
        body: OrderRequest,
        user_id: str = Depends(require_user),
        services: Services = Depends(get_services),
    ):
        order = await services.payments.create_order(user_id, body.appointment_id)
        return {"success": True, "order": order.model_dump()}

    @app.post(f"{prefix}/verifyRazorpay")
    async def verify_razorpay(
        body: PaymentVerification,
        user_id: str = Depends(require_user),
        services: Services = Depends(get_services),
    ):
        await services.payments.verify(
            user_id,
            body.razorpay_order_id,
            body.razorpay_payment_id,
            body.razorpay_signature,
        )
        return {"success": True, "message": "Payment Successful"}

    @app.get(f"{prefix}/hospitals")
    async def list_hospitals(services: Services = Depends(get_services)):
        hospitals = await services.directory.list_hospitals()
        return {
            "success": True,
            "hospitals": [h.model_dump() for h in hospitals],
            "message": "Hospital fetched successfully...",
        }

    @app.get(f"{prefix}/doctors/{{hospital_name}}")
    async def list_doctors(hospital_name: str, services: Services = Depends(get_services)):
        doctors = await services.directory.list_doctors(hospital_name)
        return {"success": True, "doctors": doctors, "message": "Successfully fetched."}


app = create_app()


# ============================================================================
# Run Server
# ============================================================================


def run_server(host: Optional[str] = None, port: Optional[int] = None):
    """Run the booking API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "medibook.api.server:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
