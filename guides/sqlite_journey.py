"""Example showing journey state surviving a process restart with SQLite."""

import asyncio
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from journeyflow import JourneyInstanceProvider, RequestContext, StoreInstanceStateProvider
from journeyflow import journey, register_journey
from journeyflow.persistence import SQLiteStateStore


@dataclass
class Basket:
    items: list[str] = field(default_factory=list)


register_journey("checkout", Basket, "customer", "basket?")


@journey("checkout")
def checkout(request):
    pass


def make_provider(db_path: Path) -> JourneyInstanceProvider:
    return JourneyInstanceProvider(StoreInstanceStateProvider(SQLiteStateStore(db_path)))


async def main():
    db_path = Path(tempfile.mkdtemp()) / "journeys.db"
    url = "/checkout?customer=cust-123"

    provider = make_provider(db_path)
    instance = await provider.get_or_create_instance(
        RequestContext.from_url(url, handler=checkout), Basket
    )
    await instance.update_state_with(lambda basket: basket.items.append("book"))
    print(f"✅ Saved {instance.instance_id}: {instance.state}")

    # A fresh provider and store stand in for a restarted process
    provider = make_provider(db_path)
    instance = await provider.get_instance(RequestContext.from_url(url, handler=checkout))
    print(f"📦 Reloaded {instance.instance_id}: {instance.state}")

    await instance.delete()
    print("🗑️ Journey deleted")


if __name__ == "__main__":
    asyncio.run(main())
