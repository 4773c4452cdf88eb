import base64
from io import BytesIO
import qrcode


def verification_url(base_url, certificate_id):
    return f"{base_url.rstrip('/')}/verify/{certificate_id}"


def generate_qr_code(data, box_size=10, border=2):
    """
    Generate a QR code image for a verification URL.

    Returns: PIL Image object (RGB)
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    return img.convert('RGB')


def image_to_data_url(image, image_format='PNG'):
    buf = BytesIO()
    image.save(buf, format=image_format)
    encoded = base64.b64encode(buf.getvalue()).decode('ascii')
    return f'data:image/{image_format.lower()};base64,{encoded}'


def qr_code_data_url(data):
    return image_to_data_url(generate_qr_code(data))
