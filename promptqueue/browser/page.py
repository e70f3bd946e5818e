"""
Playwright adapters for the chat page.

- PageSnapshotProvider   collects evidence for the inference engine
- PageInputSurface       reads/writes the prompt editor
- PageSubmissionTrigger  submits the editor content
- PageHooks              mutation observer + Alt+Enter queue key

All page work happens in small evaluate() scripts so each call is one
round trip. Playwright errors (navigation, closed page, ...) become
AdapterUnavailable or an empty snapshot; nothing here raises anything else.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable

from ..core.adapters import InputSurface, SnapshotProvider, SubmissionTrigger
from ..core.errors import AdapterUnavailable
from ..core.models import EnvironmentSnapshot

if TYPE_CHECKING:
    from playwright.async_api import Page

log = logging.getLogger("promptqueue.browser")

# Caps the broad spinner walk only; controls and markers are always collected
MAX_ELEMENTS = 4000
MAX_TEXT = 200

MUTATION_BINDING = "__promptqueueMutation"
QUEUE_KEY_BINDING = "__promptqueueQueueKey"
BUSY_FLAG = "__promptqueueBusy"


# Every script is a single arrow function; the editor helpers are inlined
# into each body. Editor lookup order: active editable element,
# role=textbox contenteditable, any contenteditable, textarea / text input.
_EDITOR_HELPERS = """
  const isEditable = (el) => !!el && (el.tagName === 'TEXTAREA' || el.tagName === 'INPUT' || el.isContentEditable);
  const findEditor = () => {
    const active = document.activeElement;
    if (isEditable(active)) return active;
    return document.querySelector('[role="textbox"][contenteditable="true"], [role="textbox"][contenteditable]')
      || document.querySelector('[contenteditable="true"]')
      || document.querySelector('textarea, input[type="text"]')
      || null;
  };
  const getText = (el) => {
    if (!el) return '';
    if (el.tagName === 'TEXTAREA' || el.tagName === 'INPUT') return el.value || '';
    return el.innerText || el.textContent || '';
  };
"""

_EVIDENCE_SCRIPT = """
([maxElements, maxText]) => {
  const out = [];
  const seen = new Set();
  const collect = (el) => {
    if (seen.has(el)) return;
    seen.add(el);
    try {
      const tag = el.tagName.toLowerCase();
      const attrs = {};
      for (const name of ['data-streaming', 'data-generating']) {
        const v = el.getAttribute(name);
        if (v !== null) attrs[name] = v;
      }
      const style = window.getComputedStyle(el);
      const wantsText = tag === 'button' || tag === 'div' || tag === 'span' || el.getAttribute('role') === 'status';
      out.push({
        tag: tag,
        text: wantsText ? (el.innerText || '').trim().slice(0, maxText) : '',
        aria_label: el.getAttribute('aria-label') || '',
        role: el.getAttribute('role') || '',
        class_name: (el.className || '').toString().slice(0, maxText),
        animation_name: (style && style.animationName) || 'none',
        visible: !!el.offsetParent,
        attributes: attrs,
      });
    } catch (e) { /* element vanished mid-walk */ }
  };
  // Controls, status regions and markers: always the whole document
  document.querySelectorAll('button, [role="status"], [data-streaming], [data-generating]').forEach(collect);
  // Broad walk for spinners is capped, newest content (end of document) first
  const all = document.querySelectorAll('*');
  const stop = Math.max(0, all.length - maxElements);
  for (let i = all.length - 1; i >= stop; i--) collect(all[i]);
  return out;
}
"""

_READ_SCRIPT = "() => {" + _EDITOR_HELPERS + """
  const el = findEditor();
  return el ? getText(el) : null;
}
"""

_WRITE_SCRIPT = "(text) => {" + _EDITOR_HELPERS + """
  const el = findEditor();
  if (!el) return false;
  if (el.tagName === 'TEXTAREA' || el.tagName === 'INPUT') {
    el.value = text;
  } else {
    el.innerText = text;
  }
  // Let the page's framework pick the change up as real input
  el.dispatchEvent(new InputEvent('input', { bubbles: true }));
  el.focus();
  return true;
}
"""

_FOCUS_SCRIPT = "() => {" + _EDITOR_HELPERS + """
  const el = findEditor();
  if (!el) return false;
  el.focus();
  return true;
}
"""

_HAS_EDITOR_SCRIPT = "() => {" + _EDITOR_HELPERS + """
  return !!findEditor();
}
"""

# Priority order: submit button in the editor's form, form submit event,
# a send-like button anywhere, Enter keydown on the editor.
_TRIGGER_SCRIPT = "() => {" + _EDITOR_HELPERS + """
  const editor = findEditor();
  if (!editor) return null;
  const form = editor.closest ? editor.closest('form') : null;
  if (form) {
    const submit = form.querySelector('button[type="submit"]');
    if (submit) { submit.click(); return 'submit_button'; }
    form.dispatchEvent(new SubmitEvent('submit', { bubbles: true, cancelable: true }));
    return 'form_submit';
  }
  const send = Array.from(document.querySelectorAll('button'))
    .find(b => /send|submit|reply|enter/i.test((b.innerText || '') + ' ' + (b.getAttribute('aria-label') || '')));
  if (send) { send.click(); return 'send_button'; }
  editor.dispatchEvent(new KeyboardEvent('keydown', { bubbles: true, cancelable: true, key: 'Enter' }));
  return 'enter_key';
}
"""

_HOOKS_SCRIPT = "() => {" + _EDITOR_HELPERS + """
  if (window.__promptqueueHooked || !document.body) return false;
  window.__promptqueueHooked = true;
  const observer = new MutationObserver(() => {
    try { window.MUTATION_BINDING(); } catch (e) { /* binding gone */ }
  });
  observer.observe(document.body, { childList: true, subtree: true, attributes: false });
  document.addEventListener('keydown', (e) => {
    if (!(e.key === 'Enter' && e.altKey)) return;
    const target = e.target;
    const editor = isEditable(target) ? target : findEditor();
    if (!editor) return;
    // While idle the key belongs to the page
    if (!window.BUSY_FLAG) return;
    e.preventDefault();
    try { window.QUEUE_KEY_BINDING(getText(editor)); } catch (err) { /* binding gone */ }
  }, true);
  return true;
}
""".replace("MUTATION_BINDING", MUTATION_BINDING) \
   .replace("QUEUE_KEY_BINDING", QUEUE_KEY_BINDING) \
   .replace("BUSY_FLAG", BUSY_FLAG)

_BUSY_SCRIPT = "(busy) => { window.BUSY_FLAG = !!busy; }".replace("BUSY_FLAG", BUSY_FLAG)


class PageSnapshotProvider(SnapshotProvider):

    def __init__(self, page: "Page", max_elements: int = MAX_ELEMENTS) -> None:
        self._page = page
        self._max_elements = max_elements

    async def snapshot(self) -> EnvironmentSnapshot:
        try:
            raw = await self._page.evaluate(_EVIDENCE_SCRIPT, [self._max_elements, MAX_TEXT])
            return EnvironmentSnapshot.model_validate({"elements": raw or [], "taken_at": time.monotonic()})
        except Exception as e:
            log.debug("Snapshot unavailable  error=%s", e)
            return EnvironmentSnapshot(taken_at=time.monotonic(), collected=False)


class PageInputSurface(InputSurface):

    def __init__(self, page: "Page") -> None:
        self._page = page

    async def _evaluate(self, script: str, arg=None):
        try:
            if arg is None:
                return await self._page.evaluate(script)
            return await self._page.evaluate(script, arg)
        except Exception as e:
            raise AdapterUnavailable(f"Editor not reachable: {e}") from e

    async def available(self) -> bool:
        try:
            return bool(await self._evaluate(_HAS_EDITOR_SCRIPT))
        except AdapterUnavailable:
            return False

    async def read_text(self) -> str:
        text = await self._evaluate(_READ_SCRIPT)
        if text is None:
            raise AdapterUnavailable("No editor found")
        return str(text)

    async def write_text(self, text: str) -> None:
        if not await self._evaluate(_WRITE_SCRIPT, text):
            raise AdapterUnavailable("No editor found")

    async def focus(self) -> None:
        if not await self._evaluate(_FOCUS_SCRIPT):
            raise AdapterUnavailable("No editor found")


class PageSubmissionTrigger(SubmissionTrigger):

    def __init__(self, page: "Page") -> None:
        self._page = page

    async def available(self) -> bool:
        # The Enter-key fallback works wherever there is an editor
        try:
            return bool(await self._page.evaluate(_HAS_EDITOR_SCRIPT))
        except Exception:
            return False

    async def trigger(self) -> str:
        try:
            method = await self._page.evaluate(_TRIGGER_SCRIPT)
        except Exception as e:
            raise AdapterUnavailable(f"Submit failed: {e}") from e
        if not method:
            raise AdapterUnavailable("No submit control found")
        log.debug("Triggered  method=%s", method)
        return str(method)


class PageHooks:
    """Installs the mutation observer and the Alt+Enter queue key on the page."""

    def __init__(self, page: "Page") -> None:
        self._page = page
        self._busy = False

    async def install(
        self,
        on_mutation: Callable[[], None],
        on_queue_key: Callable[[str], Awaitable[None]],
    ) -> None:
        await self._page.expose_function(MUTATION_BINDING, on_mutation)
        await self._page.expose_function(QUEUE_KEY_BINDING, on_queue_key)
        # Re-install after every navigation, and once now for the current document
        await self._page.add_init_script(
            "window.addEventListener('DOMContentLoaded', () => { (" + _HOOKS_SCRIPT + ")(); });"
        )
        # A fresh document starts with the flag unset
        self._page.on("domcontentloaded", self._on_document)
        await self.reinstall()
        log.info("Page hooks installed  url=%s", self._page.url)

    async def reinstall(self) -> bool:
        try:
            installed = bool(await self._page.evaluate(_HOOKS_SCRIPT))
        except Exception as e:
            log.warning("Hook install failed  error=%s", e)
            return False
        await self._push_busy()
        return installed

    async def set_busy(self, busy: bool) -> None:
        """Mirror the monitor state into the page; Alt+Enter is only taken while busy."""
        self._busy = bool(busy)
        await self._push_busy()

    @property
    def busy(self) -> bool:
        return self._busy

    async def _on_document(self, *_) -> None:
        await self._push_busy()

    async def _push_busy(self) -> None:
        try:
            await self._page.evaluate(_BUSY_SCRIPT, self._busy)
        except Exception as e:
            log.debug("Busy flag not set  error=%s", e)
