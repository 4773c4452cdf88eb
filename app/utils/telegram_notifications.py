import asyncio
import logging
import threading
from telegram import Bot

logger = logging.getLogger(__name__)

async def send_telegram_message(bot_token, chat_id, message):
    try:
        bot = Bot(token=bot_token)
        result = await bot.send_message(chat_id=chat_id, text=message)
        return result.message_id
    except Exception as e:
        logger.error(f"Error sending Telegram notification to {chat_id}: {e}")
        return None

def build_issued_message(certificate, view_url):
    return f"""
🩺 تم إصدار شهادة صحية جديدة

👤 الاسم: {certificate.name}
🪪 رقم الهوية: {certificate.id_number}
📄 رقم الشهادة: {certificate.certificate_number}
🏪 المنشأة: {certificate.facility_name or 'غير محدد'}
📅 تاريخ الإصدار: {certificate.issue_date}

🔗 {view_url}
"""

def notify_certificate_issued(config, certificate, view_url):
    """Send the issuance notice from a daemon thread. Returns the thread or None."""
    bot_token = config.get('TELEGRAM_BOT_TOKEN')
    chat_id = config.get('TELEGRAM_CHAT_ID')
    if not bot_token or not chat_id:
        return None

    message = build_issued_message(certificate, view_url)

    def send_async():
        asyncio.run(send_telegram_message(bot_token, chat_id, message))

    thread = threading.Thread(target=send_async, daemon=True)
    thread.start()
    return thread
