import logging
import os
from app import create_app

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)

def main():
    """تشغيل نظام الشهادة الصحية الموحدة"""
    app = create_app()
    port = int(os.environ.get('PORT', 5000))

    logger.info("=" * 50)
    logger.info("بدء تشغيل نظام الشهادة الصحية الموحدة")
    logger.info("=" * 50)

    if not app.extensions['certificate_store'].available:
        logger.warning("Supabase environment variables are missing, persistence is disabled")

    logger.info(f"Starting Flask application on port {port}...")
    app.run(host='0.0.0.0', port=port, debug=False, use_reloader=False)

if __name__ == '__main__':
    main()
