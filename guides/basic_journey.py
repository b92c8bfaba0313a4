"""Simple example walking a two-step wizard through the instance provider."""

import asyncio

from pydantic import BaseModel

from journeyflow import (
    RequestContext,
    build_provider,
    journey,
    register_journey,
    require_instance,
)


class SignupState(BaseModel):
    email: str = ""
    plan: str = "free"


register_journey("signup", SignupState, "account", append_unique_key=True)


@journey("signup")
def start_signup(request):
    pass


@journey("signup")
@require_instance()
def choose_plan(request):
    pass


async def main():
    """Start a journey, then continue it from a second request."""
    provider = build_provider()

    # First request: create the instance and build the follow-up link
    context = RequestContext.from_url("/signup?account=acme", handler=start_signup)
    instance = await provider.get_or_create_instance(
        context, lambda: SignupState(email="owner@acme.test")
    )
    next_url = instance.instance_id.with_query("/signup/plan")

    print(f"✅ Journey started: {instance.instance_id}")
    print(f"🔗 Continue at: {next_url}")

    # Second request: the link carries the unique key
    context = RequestContext.from_url(next_url, handler=choose_plan)
    if await provider.check_required_instance(context) is not None:
        print("❌ No active signup")
        return

    current = await provider.get_instance(context, SignupState)
    await current.update_state(current.state.model_copy(update={"plan": "premium"}))
    await current.complete()

    print(f"📋 Final state: {current.state}")
    print(f"🏁 Status: {current.status.value}")


if __name__ == "__main__":
    asyncio.run(main())
