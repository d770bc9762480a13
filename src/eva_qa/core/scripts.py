"""
Page Scripts - In-page JavaScript with one fixed contract per call site.

Every script returns plain JSON data; all decisions (hashing, filtering,
classification, ordering) are made in Python. The helpers below are the
only places the core calls ``page.evaluate``.

Example:
    >>> elements = await collect_fingerprint_elements(page, FINGERPRINT_SELECTORS)
    >>> overlay = await detect_overlay(page, OVERLAY_SELECTORS)
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from eva_qa.interfaces.browser import IPage


# Input:  string[] of selectors
# Output: [{tag, role, text, x, y, attrs: {id, name, type, href, aria-label, data-testid}}]
COLLECT_FINGERPRINT_ELEMENTS_JS = r'''(selectors) => {
    const attrNames = ['id', 'name', 'type', 'href', 'aria-label', 'data-testid'];
    const result = [];

    document.querySelectorAll(selectors.join(',')).forEach((el) => {
        // Hidden elements do not take part in the fingerprint
        if (!el.offsetParent && getComputedStyle(el).position !== 'fixed') return;

        const rect = el.getBoundingClientRect();
        const attrs = {};
        attrNames.forEach((name) => {
            const value = el.getAttribute(name);
            if (value) attrs[name] = value;
        });

        result.push({
            tag: el.tagName.toLowerCase(),
            role: el.getAttribute('role'),
            text: (el.textContent || '').trim().slice(0, 200),
            x: rect.x,
            y: rect.y,
            attrs: attrs,
        });
    });

    return result;
}'''


# Input:  string[] of overlay selectors, checked in order
# Output: null or {id, labelledBy, label, className} of the first visible match
DETECT_OVERLAY_JS = r'''(selectors) => {
    for (const selector of selectors) {
        const el = document.querySelector(selector);
        if (!el) continue;
        if (el.offsetParent === null && getComputedStyle(el).position !== 'fixed') continue;

        return {
            id: el.id || null,
            labelledBy: el.getAttribute('aria-labelledby'),
            label: el.getAttribute('aria-label'),
            className: typeof el.className === 'string' ? el.className : '',
        };
    }
    return null;
}'''


# Input:  none
# Output: [{formId, fields: [{name, type, value, checked}]}] for visible forms
SNAPSHOT_FORMS_JS = r'''() => {
    const overlay = document.querySelector('[role="dialog"], [role="alertdialog"], [aria-modal="true"]');
    const container = overlay || document;
    const forms = [];

    container.querySelectorAll('form').forEach((form, formIndex) => {
        if (!form.offsetParent) return;

        let formId = form.id ? `#${form.id}` : '';
        if (!formId && form.getAttribute('name')) formId = `form[name="${form.getAttribute('name')}"]`;
        if (!formId) formId = `form:nth-of-type(${formIndex + 1})`;

        const fields = [];
        form.querySelectorAll('input, select, textarea').forEach((input, fieldIndex) => {
            fields.push({
                name: input.name || input.id || input.getAttribute('aria-label')
                    || input.placeholder || `field-${fieldIndex}`,
                type: (input.type || input.tagName).toLowerCase(),
                value: input.value || '',
                checked: !!input.checked,
            });
        });
        forms.push({formId: formId, fields: fields});
    });

    return forms;
}'''


# Selector builder shared by the discovery and form scripts
_SELECTOR_HELPERS_JS = r'''
    const isUnique = (selector) => {
        try {
            return document.querySelectorAll(selector).length === 1;
        } catch (e) {
            return false;
        }
    };

    const getSelector = (el) => {
        if (el.id) return `#${CSS.escape(el.id)}`;

        const testId = el.getAttribute('data-testid');
        if (testId) return `[data-testid="${CSS.escape(testId)}"]`;

        const ariaLabel = el.getAttribute('aria-label');
        if (ariaLabel) {
            const byLabel = `[aria-label="${CSS.escape(ariaLabel)}"]`;
            if (isUnique(byLabel)) return byLabel;
        }

        const path = [];
        let current = el;
        while (current && current !== document.body) {
            let segment = current.tagName.toLowerCase();
            const role = current.getAttribute('role');
            if (role) segment += `[role="${role}"]`;

            const parent = current.parentElement;
            if (parent) {
                const sameTag = Array.from(parent.children).filter((c) => c.tagName === current.tagName);
                if (sameTag.length > 1) segment += `:nth-of-type(${sameTag.indexOf(current) + 1})`;
            }

            path.unshift(segment);
            current = current.parentElement;
            if (path.length > 1 && isUnique(path.join(' > '))) break;
        }
        return path.join(' > ');
    };
'''


# Input:  {selectors: string[], ignore: string[]}
# Output: [{index, tag, role, type, label, selector, className, disabled,
#           visible, rect: {x, y, width, height}, zIndex, options}]
DISCOVER_ELEMENTS_JS = r'''({selectors, ignore}) => {''' + _SELECTOR_HELPERS_JS + r'''
    const isVisible = (el) => {
        if (!el.offsetParent && getComputedStyle(el).position !== 'fixed') return false;
        const rect = el.getBoundingClientRect();
        if (rect.width === 0 || rect.height === 0) return false;
        const style = getComputedStyle(el);
        return style.visibility !== 'hidden' && style.opacity !== '0';
    };

    const isInViewport = (el) => {
        const rect = el.getBoundingClientRect();
        return rect.top < window.innerHeight && rect.bottom > 0
            && rect.left < window.innerWidth && rect.right > 0;
    };

    const shouldIgnore = (el) => ignore.some((selector) => {
        try {
            return el.matches(selector) || el.closest(selector) !== null;
        } catch (e) {
            return false;
        }
    });

    const getLabel = (el) => {
        const ariaLabel = el.getAttribute('aria-label');
        if (ariaLabel) return ariaLabel.trim();

        const labelledBy = el.getAttribute('aria-labelledby');
        if (labelledBy) {
            const labelEl = document.getElementById(labelledBy);
            if (labelEl && labelEl.textContent) return labelEl.textContent.trim();
        }

        const title = el.getAttribute('title');
        if (title) return title.trim();

        const text = (el.innerText || el.textContent || '').trim().slice(0, 100);
        if (text) return text;

        const placeholder = el.getAttribute('placeholder');
        if (placeholder) return placeholder.trim();

        return el.getAttribute('name') || el.id || el.tagName.toLowerCase();
    };

    const getZIndex = (el) => {
        for (let current = el; current; current = current.parentElement) {
            const zIndex = getComputedStyle(current).zIndex;
            if (zIndex !== 'auto') return parseInt(zIndex, 10) || 0;
        }
        return 0;
    };

    const result = [];
    document.querySelectorAll(selectors.join(',')).forEach((el, index) => {
        if (shouldIgnore(el)) return;

        const rect = el.getBoundingClientRect();
        result.push({
            index: index,
            tag: el.tagName.toLowerCase(),
            role: el.getAttribute('role'),
            type: el.getAttribute('type'),
            label: getLabel(el),
            selector: getSelector(el),
            className: typeof el.className === 'string' ? el.className : '',
            disabled: el.hasAttribute('disabled') || el.getAttribute('aria-disabled') === 'true',
            visible: isVisible(el) && isInViewport(el),
            rect: {x: rect.x, y: rect.y, width: rect.width, height: rect.height},
            zIndex: getZIndex(el),
            options: el.tagName === 'SELECT'
                ? Array.from(el.options).map((o) => o.value)
                : [],
        });
    });

    return result;
}'''


# Input:  {known: string[]} selectors already discovered on the page
# Output: [{label, submitSelector, discovered}] for visible forms;
#         submitSelector is null when the form has no submit control and
#         discovered is true when a known selector resolves to that control
FIND_FORMS_JS = r'''({known}) => {''' + _SELECTOR_HELPERS_JS + r'''
    const resolvesTo = (selector, el) => {
        try {
            return document.querySelector(selector) === el;
        } catch (e) {
            return false;
        }
    };

    const forms = [];
    document.querySelectorAll('form').forEach((form) => {
        if (!form.offsetParent) return;

        const submit = form.querySelector(
            'button[type="submit"], input[type="submit"], button:not([type])'
        );
        forms.push({
            label: form.getAttribute('aria-label') || form.getAttribute('name') || form.id || 'Submit',
            submitSelector: submit ? getSelector(submit) : null,
            discovered: submit ? known.some((selector) => resolvesTo(selector, submit)) : false,
        });
    });

    return forms;
}'''


# Input:  {checkTouchTargets, minTouchTarget, checkTruncation, checkOutOfBounds, tolerance}
# Output: {viewportWidth, scrollWidth, smallTargets: [{selector, width, height}],
#          truncated: [selector], outOfBounds: [selector]}
RESPONSIVE_LAYOUT_JS = r'''(opts) => {
    const describe = (el) => {
        if (el.id) return `#${el.id}`;
        const testId = el.getAttribute('data-testid');
        if (testId) return `[data-testid="${testId}"]`;
        const cls = typeof el.className === 'string' ? el.className.trim().split(/\s+/)[0] : '';
        return el.tagName.toLowerCase() + (cls ? `.${cls}` : '');
    };
    const visible = (el) => {
        const rect = el.getBoundingClientRect();
        return rect.width > 0 && rect.height > 0 && getComputedStyle(el).visibility !== 'hidden';
    };

    const viewportWidth = window.innerWidth;
    const result = {
        viewportWidth: viewportWidth,
        scrollWidth: document.documentElement.scrollWidth,
        smallTargets: [],
        truncated: [],
        outOfBounds: [],
    };

    if (opts.checkTouchTargets) {
        document.querySelectorAll('a[href], button, input, select, textarea, [role="button"]').forEach((el) => {
            if (!visible(el)) return;
            const rect = el.getBoundingClientRect();
            if (rect.width < opts.minTouchTarget || rect.height < opts.minTouchTarget) {
                result.smallTargets.push({selector: describe(el), width: rect.width, height: rect.height});
            }
        });
    }

    if (opts.checkTruncation) {
        document.querySelectorAll('body *').forEach((el) => {
            if (!visible(el) || el.children.length > 0) return;
            const style = getComputedStyle(el);
            if (style.textOverflow === 'ellipsis' && el.scrollWidth > el.clientWidth) {
                result.truncated.push(describe(el));
            }
        });
    }

    if (opts.checkOutOfBounds) {
        document.querySelectorAll('body *').forEach((el) => {
            if (!visible(el)) return;
            if (getComputedStyle(el).position === 'fixed') return;
            const rect = el.getBoundingClientRect();
            if (rect.right > viewportWidth + opts.tolerance || rect.left < -opts.tolerance) {
                result.outOfBounds.push(describe(el));
            }
        });
    }

    return result;
}'''


async def collect_fingerprint_elements(page: "IPage", selectors: List[str]) -> List[Dict[str, Any]]:
    """Visible interactive elements as raw descriptors."""
    return await page.evaluate(COLLECT_FINGERPRINT_ELEMENTS_JS, list(selectors)) or []


async def detect_overlay(page: "IPage", selectors: List[str]) -> Optional[Dict[str, Any]]:
    """Attributes of the first visible overlay, or None."""
    return await page.evaluate(DETECT_OVERLAY_JS, list(selectors))


async def snapshot_forms(page: "IPage") -> List[Dict[str, Any]]:
    """Raw field values of the visible forms."""
    return await page.evaluate(SNAPSHOT_FORMS_JS) or []


async def discover_elements(
    page: "IPage",
    selectors: List[str],
    ignore: List[str],
) -> List[Dict[str, Any]]:
    """Candidate interactive elements not matched by an ignore selector."""
    payload = {"selectors": list(selectors), "ignore": list(ignore)}
    return await page.evaluate(DISCOVER_ELEMENTS_JS, payload) or []


async def find_forms(page: "IPage", known: List[str]) -> List[Dict[str, Any]]:
    """Visible forms with the selector of their submit control."""
    return await page.evaluate(FIND_FORMS_JS, {"known": list(known)}) or []


async def measure_layout(page: "IPage", options: Dict[str, Any]) -> Dict[str, Any]:
    """Layout measurements used by the responsive validator."""
    return await page.evaluate(RESPONSIVE_LAYOUT_JS, options) or {}
