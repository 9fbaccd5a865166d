# storefront/services/user_service.py
from storefront.domain.schemas import Customer, CustomerTier
from storefront.services.remote_store import RemoteStoreGateway
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PROFILES_TABLE = "profiles"


class UserService:
    def __init__(self, gateway: RemoteStoreGateway):
        self.gateway = gateway

    def get_customer(self, customer_id: str) -> Customer:
        rows = self.gateway.query(PROFILES_TABLE, filters={"id": customer_id}, limit=1)
        if not rows:
            #no profile row yet (fresh sign-up), prices as retail
            logger.info(f"No profile for customer {customer_id}, assuming retail")
            return Customer(id=customer_id, tier=CustomerTier.RETAIL)

        profile = rows[0]
        return Customer(
            id=profile["id"],
            tier=profile.get("user_type") or CustomerTier.RETAIL,
            full_name=profile.get("full_name"),
            phone=profile.get("phone"),
            address=profile.get("address"),
            city=profile.get("city"),
        )
