from fastapi.templating import Jinja2Templates

from invoicer.core.config import settings
from invoicer.core.formatting import format_currency, format_date

templates = Jinja2Templates(directory=settings.TEMPLATES_DIR)
templates.env.filters["currency"] = format_currency
templates.env.filters["nl_date"] = format_date
