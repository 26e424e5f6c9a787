"""
Reusable in-page JavaScript probes.

Every probe is an IIFE that returns `JSON.stringify(...)` so the AppleScript
bridge hands back a decodable string. Placeholders (`__SELECTOR__`, ...) are
substituted with `json.dumps` values via `render`.
"""

from __future__ import annotations

import json
import re
from typing import Any

# Shared prelude: resolve a selector, reporting syntax errors instead of throwing.
QUERY_JS = """
  function __mcQueryAll(selector) {
    try {
      return { nodes: Array.from(document.querySelectorAll(selector)) };
    } catch (e) {
      return { invalid: true, message: String(e && e.message || e) };
    }
  }
"""

ELEMENT_RECT_JS = """
(function() {
  __QUERY__
  const q = __mcQueryAll(__SELECTOR__);
  if (q.invalid) return JSON.stringify({ invalidSelector: true, message: q.message });
  const count = q.nodes.length;
  if (!count) return JSON.stringify({ count: 0 });
  const el = q.nodes[0];
  if (__SCROLL__) {
    try {
      el.scrollIntoView({ behavior: 'instant', block: 'center', inline: 'center' });
    } catch (e) {
      // ignore
    }
  }
  const r = el.getBoundingClientRect();
  return JSON.stringify({
    count: count,
    rect: { left: r.left, top: r.top, width: r.width, height: r.height },
    viewport: {
      width: window.innerWidth,
      height: window.innerHeight,
      scrollX: window.scrollX || window.pageXOffset || 0,
      scrollY: window.scrollY || window.pageYOffset || 0
    }
  });
})();
"""

VISIBILITY_JS = """
(function() {
  __QUERY__
  const q = __mcQueryAll(__SELECTOR__);
  if (q.invalid) return JSON.stringify({ invalidSelector: true, message: q.message });
  const el = q.nodes[0];
  if (!el) return JSON.stringify({ found: false, visible: false, clickable: false, inViewport: false });

  const rect = el.getBoundingClientRect();
  const style = window.getComputedStyle(el);
  const visible = style.display !== 'none' &&
                  style.visibility !== 'hidden' &&
                  style.opacity !== '0' &&
                  rect.width > 0 &&
                  rect.height > 0;

  const vw = window.innerWidth || document.documentElement.clientWidth;
  const vh = window.innerHeight || document.documentElement.clientHeight;
  const inViewport = rect.bottom > 0 && rect.right > 0 && rect.top < vh && rect.left < vw;

  let covered = false;
  let coveredBy = null;
  if (visible && inViewport) {
    const cx = Math.min(Math.max(rect.left + rect.width / 2, 0), vw - 1);
    const cy = Math.min(Math.max(rect.top + rect.height / 2, 0), vh - 1);
    const top = document.elementFromPoint(cx, cy);
    if (top && top !== el && !el.contains(top)) {
      covered = true;
      coveredBy = (top.tagName || '').toLowerCase() + (top.id ? '#' + top.id : '');
    }
  }

  const disabled = el.hasAttribute('disabled') || el.getAttribute('aria-disabled') === 'true';
  const clickable = visible && style.pointerEvents !== 'none' && !disabled && !covered;

  return JSON.stringify({
    found: true,
    visible: visible,
    clickable: clickable,
    inViewport: inViewport,
    disabled: disabled,
    covered: covered,
    coveredBy: coveredBy
  });
})();
"""

ELEMENT_INFO_JS = """
(function() {
  __QUERY__
  const q = __mcQueryAll(__SELECTOR__);
  if (q.invalid) return JSON.stringify({ invalidSelector: true, message: q.message });
  const el = q.nodes[0];
  if (!el) return JSON.stringify({ found: false });
  const tag = (el.tagName || '').toLowerCase();
  return JSON.stringify({
    found: true,
    tagName: tag,
    type: el.type || null,
    name: el.name || null,
    id: el.id || null,
    placeholder: el.placeholder || null,
    value: ('value' in el) ? String(el.value) : (el.textContent || ''),
    disabled: !!el.disabled || el.hasAttribute('disabled'),
    readonly: !!el.readOnly || el.hasAttribute('readonly'),
    contentEditable: !!el.isContentEditable
  });
})();
"""

# Native value setter first so framework-controlled inputs (React, Vue) notice the change.
SET_VALUE_JS = """
(function() {
  const el = document.querySelector(__SELECTOR__);
  if (!el) return JSON.stringify({ success: false, reason: 'Element not found' });
  const next = __VALUE__;
  try { el.focus(); } catch (e) {}
  if (el.isContentEditable) {
    el.textContent = next;
  } else {
    let assigned = false;
    try {
      const proto = Object.getPrototypeOf(el);
      const desc = proto ? Object.getOwnPropertyDescriptor(proto, 'value') : null;
      if (desc && typeof desc.set === 'function') {
        desc.set.call(el, next);
        assigned = true;
      }
    } catch (e) {}
    if (!assigned) el.value = next;
  }
  el.dispatchEvent(new Event('input', { bubbles: true }));
  el.dispatchEvent(new Event('change', { bubbles: true }));
  const actual = el.isContentEditable ? (el.textContent || '') : String(el.value);
  return JSON.stringify({ success: true, value: actual });
})();
"""

GET_VALUE_JS = """
(function() {
  const el = document.querySelector(__SELECTOR__);
  if (!el) return JSON.stringify({ found: false });
  const value = el.isContentEditable ? (el.textContent || '') : String(el.value == null ? '' : el.value);
  return JSON.stringify({ found: true, value: value });
})();
"""

SUBMIT_FORM_JS = """
(function() {
  const el = document.querySelector(__SELECTOR__);
  if (!el) return JSON.stringify({ success: false, reason: 'Element not found' });
  const form = (el.tagName || '').toLowerCase() === 'form' ? el : el.closest('form');
  if (form) {
    if (typeof form.requestSubmit === 'function') {
      form.requestSubmit();
    } else {
      form.submit();
    }
    return JSON.stringify({ success: true, method: 'form' });
  }
  const opts = { key: 'Enter', code: 'Enter', keyCode: 13, which: 13, bubbles: true, cancelable: true };
  el.dispatchEvent(new KeyboardEvent('keydown', opts));
  el.dispatchEvent(new KeyboardEvent('keypress', opts));
  el.dispatchEvent(new KeyboardEvent('keyup', opts));
  return JSON.stringify({ success: true, method: 'enter' });
})();
"""


_PLACEHOLDER = re.compile(r"__([A-Z]+)__")


def render(template: str, **values: Any) -> str:
    """Substitute `__NAME__` placeholders with JSON literals in a single pass.

    Substituted text is never scanned again, so a selector that happens to
    contain `__VALUE__` stays literal. Unknown names are left untouched.
    """
    table = {"QUERY": QUERY_JS}
    table.update((name.upper(), json.dumps(value)) for name, value in values.items())
    return _PLACEHOLDER.sub(lambda m: table.get(m.group(1), m.group(0)), template)
