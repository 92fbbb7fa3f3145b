"""
Server-rendered pages

The cart page is rendered server-side as an empty shell: the cart subtree
sits behind a client-only boundary and is mounted in the browser.
"""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse
from jinja2 import Template

from storefront.client.components import cart_page_boundary
from storefront.client.runtime import ClientContext
from storefront.core.config import settings

router = APIRouter()

PAGE_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <title>{{ title }}</title>
  </head>
  <body>
    <main>
      {{ body }}
    </main>
  </body>
</html>
""", autoescape=False)


@router.get("/cart", response_class=HTMLResponse)
async def cart_page():
    """Cart entry point: nothing cart-related is rendered on the server"""
    boundary = cart_page_boundary()
    body = boundary.render(ClientContext.server())
    return HTMLResponse(PAGE_TEMPLATE.render(title=f"Cart | {settings.APP_NAME}", body=body))
