"""Device capability probe backed by configuration"""

from wallet_gateway.config import settings
from wallet_gateway.domain.models import DeviceCapabilities, DeviceInfo


class StaticDeviceProbe:
    """Reports the same capabilities for every device, with trust score taken from the request"""

    def __init__(self, capabilities: DeviceCapabilities | None = None):
        self.capabilities_template = capabilities or DeviceCapabilities(
            has_nfc=settings.device_has_nfc,
            has_host_card_emulation=settings.device_has_host_card_emulation,
            has_lock_screen=settings.device_has_lock_screen,
        )

    def capabilities(self, device: DeviceInfo) -> DeviceCapabilities:
        template = self.capabilities_template
        return DeviceCapabilities(
            has_nfc=template.has_nfc,
            has_host_card_emulation=template.has_host_card_emulation,
            has_lock_screen=template.has_lock_screen,
            trust_score=device.risk_score,
        )
