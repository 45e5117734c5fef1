from typing import Iterable, Optional
from urllib.parse import quote

from vbay.models import CartItem, ContactLink, Listing


def _mailto(recipients: list[str], subject: str, body: str) -> str:
    return f"mailto:{','.join(recipients)}?subject={quote(subject, safe='')}&body={quote(body, safe='')}"


def contact_seller_link(item: Listing, sender_name: str) -> ContactLink:
    subject = f"VBay Inquiry: {item.title}"
    body = (
        f'Hi,\n\nI found your listing for "{item.title}" on VBay and I am interested '
        f"in purchasing it.\n\nIs it still available?\n\nThanks,\n{sender_name}"
    )
    return ContactLink(mailto=_mailto([item.seller_email], subject, body),
                       recipients=[item.seller_email])


def contact_all_sellers_link(items: Iterable[CartItem]) -> Optional[ContactLink]:
    recipients = list(dict.fromkeys(i.seller_email for i in items))
    if not recipients:
        return None
    body = "Hi,\n\nI am interested in several items you have listed on VBay."
    return ContactLink(mailto=_mailto(recipients, "VBay Inquiries", body),
                       recipients=recipients)
