"""Excepciones de dominio para el sistema de reservas de alojamientos."""


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Errores de Validación (entrada del cliente) ===


class InvalidDateError(DomainError):
    """Una fecha de entrada no se pudo interpretar."""

    def __init__(self, field: str, value: str | None):
        super().__init__(
            message=f"Invalid date for '{field}': {value!r}",
            code="INVALID_DATE",
        )
        self.field = field
        self.value = value


class InvalidRangeError(DomainError):
    """check_out debe ser estrictamente posterior a check_in."""

    def __init__(self, check_in: str, check_out: str):
        super().__init__(
            message=f"check_out must be after check_in: {check_in} >= {check_out}",
            code="INVALID_RANGE",
        )
        self.check_in = check_in
        self.check_out = check_out


class PastDateError(DomainError):
    """check_in anterior a la fecha actual (UTC)."""

    def __init__(self, check_in: str, today: str):
        super().__init__(
            message=f"check_in cannot be in the past: {check_in} < {today}",
            code="PAST_DATE",
        )
        self.check_in = check_in
        self.today = today


class InvalidPriceError(DomainError):
    """Monto monetario inválido o con más decimales de los permitidos."""

    def __init__(self, message: str):
        super().__init__(message=message, code="INVALID_PRICE")


# === Errores de Búsqueda ===


class NotFoundError(DomainError):
    """El recurso solicitado no existe."""

    def __init__(self, resource: str, identifier: str, code: str = "NOT_FOUND"):
        super().__init__(message=f"{resource} not found: {identifier}", code=code)
        self.resource = resource
        self.identifier = identifier


class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: str):
        super().__init__("Listing", listing_id, code="LISTING_NOT_FOUND")
        self.listing_id = listing_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str):
        super().__init__("Booking", booking_id, code="BOOKING_NOT_FOUND")
        self.booking_id = booking_id


class PaymentNotFoundError(NotFoundError):
    def __init__(self, payment_id: str):
        super().__init__("Payment", payment_id, code="PAYMENT_NOT_FOUND")
        self.payment_id = payment_id


# === Errores de Pasarela de Pago ===


class UnsupportedProviderError(DomainError):
    """El proveedor de pago no está configurado o no soporta la operación."""

    def __init__(self, provider: str, operation: str | None = None):
        suffix = f" for {operation}" if operation else ""
        super().__init__(
            message=f"Unsupported payment provider{suffix}: {provider}",
            code="UNSUPPORTED_PROVIDER",
        )
        self.provider = provider
        self.operation = operation


class GatewayError(DomainError):
    """
    Falló la llamada al proveedor de pago.

    El mensaje nunca incluye credenciales ni respuestas crudas del proveedor;
    el detalle queda en los logs.
    """

    def __init__(self, provider: str, message: str = "Payment provider error"):
        super().__init__(message=message, code="GATEWAY_ERROR")
        self.provider = provider


class InvalidSignatureError(DomainError):
    """La firma del webhook no es válida (el proveedor reintentará la entrega)."""

    def __init__(self, provider: str, reason: str = "Invalid webhook signature"):
        super().__init__(message=reason, code="INVALID_SIGNATURE")
        self.provider = provider


class MalformedNotificationError(DomainError):
    """El cuerpo del webhook no se pudo decodificar."""

    def __init__(self, provider: str, reason: str = "Malformed webhook payload"):
        super().__init__(message=reason, code="MALFORMED_NOTIFICATION")
        self.provider = provider
