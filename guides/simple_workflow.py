"""Greeting workflow: typed steps, previous step lookup and snapshot inspection.

Run with an optional database URL to persist runs, e.g.::

    DURASTEP_DATABASE_URL=sqlite://runs.db python guides/simple_workflow.py
"""

import asyncio
import logging
import uuid

from pydantic import BaseModel

from durastep import StepContext, create_workflow, step


class UserId(BaseModel):
    userId: str


class User(BaseModel):
    userId: str
    name: str
    email: str


class Message(BaseModel):
    message: str
    recipient: str


class Delivery(BaseModel):
    sent: bool
    messageId: str


@step(id="fetch-user", input_schema=UserId, output_schema=User)
async def fetch_user(ctx: StepContext):
    """Fetch user information."""
    print(f"Fetching user {ctx.input_data.userId}...")
    return {"userId": ctx.input_data.userId, "name": "John Doe", "email": "john@example.com"}


@step(id="generate-message", input_schema=User, output_schema=Message)
def generate_message(ctx: StepContext):
    """Generate personalized greeting."""
    return {
        "message": f"Hello {ctx.input_data.name}! Welcome to our service.",
        "recipient": ctx.input_data.email,
    }


@step(id="send-message", input_schema=Message, output_schema=Delivery)
async def send_message(ctx: StepContext):
    """Send the message."""
    user = ctx.get_step_result(fetch_user)
    print(f"Sending message to {ctx.input_data.recipient} (user {user.name})...")
    return {"sent": True, "messageId": f"msg-{uuid.uuid4().hex[:8]}"}


greeting_workflow = (
    create_workflow(
        id="greeting-workflow",
        description="Send a personalized greeting to a user",
        input_schema=UserId,
        output_schema=Delivery,
    )
    .then(fetch_user)
    .then(generate_message)
    .then(send_message)
    .commit()
)


async def main():
    run = await greeting_workflow.create_run()
    result = await run.start({"userId": "user-123"})
    print("Result:", result)

    snapshot = await run.get_snapshot()
    print("Snapshot:", snapshot.to_json())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
