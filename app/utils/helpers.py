import base64
import time
from datetime import datetime, timedelta, timezone
from io import BytesIO
from PIL import Image

RIYADH_TZ = timezone(timedelta(hours=3))

def riyadh_now():
    return datetime.now(RIYADH_TZ).replace(tzinfo=None)

def epoch_millis():
    return int(time.time() * 1000)

def allowed_file(filename, allowed_extensions):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_extensions

def file_to_data_url(file_storage, allowed_formats):
    """يتحقق من أن الملف المرفوع صورة فعلية ويقرأه كـ data URL بصيغة base64"""
    content = file_storage.read()
    if not content:
        raise ValueError('ملف الصورة فارغ')
    try:
        with Image.open(BytesIO(content)) as image:
            image_format = image.format
            image.verify()
    except Exception as e:
        raise ValueError('الملف المرفوع ليس صورة صالحة') from e
    if not image_format or image_format.lower() not in allowed_formats:
        raise ValueError('صيغة الصورة غير مدعومة')
    encoded = base64.b64encode(content).decode('ascii')
    return f'data:{Image.MIME[image_format]};base64,{encoded}'
