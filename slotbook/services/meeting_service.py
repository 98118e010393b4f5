"""Video meeting provisioning for booked appointments."""

from dataclasses import dataclass

import httpx
import structlog

from slotbook.core.exceptions import MeetingProvisioningError
from slotbook.schemas.appointments import AppointmentResponse

logger = structlog.get_logger()


@dataclass(frozen=True)
class MeetingLink:
    """Meeting created by the external service."""

    meeting_id: str
    join_url: str


class MeetingProvisioner:
    """Creates meetings through an HTTP meeting service."""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize provisioner.

        Args:
            base_url: Meeting service base URL
            api_token: Bearer token for the meeting service
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def create_meeting(self, appointment: AppointmentResponse) -> MeetingLink:
        """
        Create a meeting covering the appointment window.

        Args:
            appointment: Persisted appointment

        Returns:
            Meeting ID and join URL

        Raises:
            MeetingProvisioningError: On timeout, HTTP error or malformed response
        """
        payload = {
            "topic": f"Appointment with {appointment.patient_name}",
            "start_time": appointment.appointment_at.isoformat(),
            "duration_minutes": appointment.duration_minutes,
            "waiting_room": True,
            "join_before_host": False,
            "agenda": f"Consultation appointment {appointment.appointment_number}",
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.post("/meetings", json=payload, headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise MeetingProvisioningError(f"Meeting service request failed: {e}") from e
        except ValueError as e:
            raise MeetingProvisioningError("Meeting service returned invalid JSON") from e

        meeting_id = data.get("id") if isinstance(data, dict) else None
        join_url = data.get("join_url") if isinstance(data, dict) else None
        if not meeting_id or not join_url:
            raise MeetingProvisioningError("Meeting service response is missing id or join_url")

        logger.info(
            "meeting_provisioned",
            appointment_id=str(appointment.id),
            meeting_id=str(meeting_id),
        )
        return MeetingLink(meeting_id=str(meeting_id), join_url=str(join_url))
