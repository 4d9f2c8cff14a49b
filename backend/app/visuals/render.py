"""
HTML markup that replaces a visual directive in lesson content.
"""

from html import escape
from typing import List, Optional, Sequence

LABEL_HINT = "Labels: A, B, C, D, E, F, G, H, I, J (as applicable)"


def _display_subject(subject: str) -> str:
    subject = subject.strip()
    return subject[:1].upper() + subject[1:]


def render_diagram(
    description: str,
    subject: str,
    image_urls: Sequence[str],
    diagram_ids: Optional[List[Optional[str]]] = None,
) -> str:
    """Captioned image container, one <img> per generated image."""
    caption = escape(description)
    attr_description = escape(description, quote=True)
    ids = [diagram_id for diagram_id in (diagram_ids or []) if diagram_id]

    images = "".join(
        f"""
  <img src="{escape(url, quote=True)}"
       alt="Educational diagram: {attr_description}"
       style="max-width: 100%; height: auto; border: 1px solid #ddd; border-radius: 8px; box-shadow: 0 4px 8px rgba(0,0,0,0.1);"
       onerror="this.style.display='none'; this.nextElementSibling.style.display='block';">
  <div style="display: none; padding: 20px; background: #f8d7da; border: 1px solid #f5c6cb; border-radius: 8px; color: #721c24;">
    <p style="margin: 0; font-weight: bold;">Diagram: {caption}</p>
    <p style="margin: 5px 0 0 0; font-size: 12px;">*Image could not be loaded*</p>
  </div>"""
        for url in image_urls
    )

    return f"""
<div class="lesson-diagram"
     style="margin: 20px 0; text-align: center; border: 2px solid #e0e0e0; border-radius: 12px; padding: 15px; background: #f9f9f9;"
     data-diagram-id="{escape(','.join(ids), quote=True)}"
     data-description="{attr_description}"
     data-subject="{escape(subject, quote=True)}">
  <h4 style="color: #333; margin-bottom: 10px; font-size: 16px;">{caption}</h4>{images}
  <p style="font-style: italic; color: #666; margin-top: 10px; font-size: 12px;">
    Subject: {escape(_display_subject(subject))} | {LABEL_HINT}
  </p>
</div>"""


def render_fallback(description: str, subject: str, error: str) -> str:
    """Placeholder shown when no image could be produced."""
    caption = escape(description)
    return f"""
<div class="lesson-diagram-fallback"
     style="margin: 20px 0; padding: 20px; background: #fff3cd; border: 2px solid #ffeaa7; border-radius: 12px; border-left: 6px solid #f39c12;"
     data-description="{escape(description, quote=True)}"
     data-subject="{escape(subject, quote=True)}">
  <h4 style="margin: 0 0 10px 0; color: #856404; font-size: 16px;">{caption}</h4>
  <div style="background: white; padding: 15px; border-radius: 8px; border: 1px solid #ffeaa7;">
    <p style="margin: 0; font-weight: bold; color: #856404;">Key Points to Visualize:</p>
    <ul style="margin: 10px 0; padding-left: 20px; color: #856404;">
      <li>Look for labeled parts A, B, C, D, E, F, G, H, I, J</li>
      <li>Focus on the structural relationships</li>
      <li>Note the biological/scientific processes shown</li>
    </ul>
  </div>
  <p style="margin: 10px 0 0 0; font-size: 11px; color: #856404;">
    *Diagram generation temporarily unavailable - Error: {escape(error)}*
  </p>
</div>"""
