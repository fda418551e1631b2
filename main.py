"""Example bot: greets on /start, shows a keyboard on /menu, echoes text.

Run with ``BOT_TOKEN`` set (a ``.env`` file works too)::

    python main.py
"""

import asyncio
import signal

from bot import CallbackEvent, CheckoutEvent, CommandEvent, TelepollBot, UpdateEvent
from core.logger import TelepollLogger
from sdk import InlineKeyboardBuilder
from sdk.models import User

logger = TelepollLogger.get_logger()


def build_bot() -> TelepollBot:
    bot = TelepollBot.from_env()

    @bot.on("ready")
    def on_ready(me: User) -> None:
        logger.info("Bot is ready", extra={"username": me.username})

    @bot.on("command")
    async def on_command(event: CommandEvent) -> None:
        message = event.message
        if event.command == "start":
            name = message.from_field.first_name if message.from_field else "there"
            await message.reply(f"👋 Hello, {name}!")
        elif event.command == "menu":
            markup = (
                InlineKeyboardBuilder()
                .add_button("👍", callback_data="vote_up")
                .add_button("👎", callback_data="vote_down")
                .new_row()
                .add_button("Bot API docs", url="https://core.telegram.org/bots/api")
                .render()
            )
            await message.write("Pick one:", reply_markup=markup)
        else:
            await message.reply(f"Unknown command /{event.command} {' '.join(event.args)}".rstrip())

    @bot.on("update")
    async def on_update(event: UpdateEvent) -> None:
        if event.message.text and not event.edited:
            await event.message.reply(event.message.text, quote=True)

    @bot.on("callback")
    async def on_callback(event: CallbackEvent) -> None:
        query = event.callback_query
        await query.answer(f"You chose {', '.join(event.args) or 'nothing'}")
        if query.message is not None:
            await query.message.edit(f"Thanks for voting {event.args[0] if event.args else ''}".rstrip())

    @bot.on("checkout")
    async def on_checkout(event: CheckoutEvent) -> None:
        await event.pre_checkout_query.accept()

    return bot


async def main() -> None:
    bot = build_bot()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: asyncio.ensure_future(bot.stop()))
        except NotImplementedError:  # Windows event loops
            pass

    logger.info("Telepoll example bot is running. Polling for updates...")
    await bot.run_forever()


if __name__ == "__main__":
    asyncio.run(main())
