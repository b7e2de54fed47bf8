"""JS snippets evaluated against live element handles.

Each snippet is a function of ``(el, args)`` as accepted by Playwright's
``ElementHandle.evaluate``. Snippets report structured results; deciding
whether a result is an error happens in Python.
"""

INTERACTABLE_STATE_JS = """(el) => {
  const rect = el.getBoundingClientRect();
  const style = window.getComputedStyle(el);
  const visible =
    rect.width > 0 &&
    rect.height > 0 &&
    style.visibility !== "hidden" &&
    style.display !== "none" &&
    style.opacity !== "0";
  return {
    visible,
    disabled: el.hasAttribute("disabled"),
    readonly: el.hasAttribute("readonly"),
  };
}"""

SCROLL_INTO_VIEW_JS = """(el) => {
  el.scrollIntoView({ behavior: "instant", block: "center", inline: "center" });
}"""

CLEAR_VALUE_JS = """(el) => {
  if ("value" in el) {
    el.value = "";
  } else if (el.isContentEditable) {
    el.textContent = "";
  }
  el.dispatchEvent(new Event("input", { bubbles: true }));
}"""

CAN_CLEAR_JS = """(el) =>
  el instanceof HTMLInputElement ||
  el instanceof HTMLTextAreaElement ||
  Boolean(el.isContentEditable)
"""

DISPATCH_EVENTS_JS = """(el, names) => {
  for (const name of names || []) {
    el.dispatchEvent(new Event(name, { bubbles: true }));
  }
}"""

READ_VALUE_JS = """(el) => {
  if ("value" in el) return String(el.value ?? "");
  if (el.isContentEditable) return String(el.textContent || "");
  return "";
}"""

SELECT_SINGLE_JS = """(select, args) => {
  const wanted = String(args.value);
  const options = Array.from(select.options);
  const option = options.find((opt) => opt.text.trim() === wanted || opt.value === wanted);
  if (!option) {
    return {
      found: false,
      available: options.slice(0, 5).map((opt) => opt.text.trim()),
      total: options.length,
    };
  }
  const previous = select.value;
  select.value = option.value;
  const changed = previous !== option.value;
  if (changed) {
    select.dispatchEvent(new Event("change", { bubbles: true }));
    select.dispatchEvent(new Event("input", { bubbles: true }));
  }
  return { found: true, text: option.text.trim(), changed };
}"""

SELECT_MULTIPLE_JS = """(select, args) => {
  const wanted = (args.values || []).map(String);
  const options = Array.from(select.options);
  const selected = [];
  options.forEach((opt) => { opt.selected = false; });
  for (const value of wanted) {
    const option = options.find((opt) => opt.text.trim() === value || opt.value === value);
    if (option) {
      option.selected = true;
      selected.push(option.text.trim());
    }
  }
  if (selected.length === 0) {
    return {
      selected,
      available: options.slice(0, 5).map((opt) => opt.text.trim()),
      total: options.length,
    };
  }
  select.dispatchEvent(new Event("change", { bubbles: true }));
  select.dispatchEvent(new Event("input", { bubbles: true }));
  return { selected };
}"""

READ_CHECKED_JS = """(input) => Boolean(input.checked)"""

TOGGLE_CHECKED_JS = """(input, args) => {
  const target = Boolean(args.checked);
  if (input.checked !== target) {
    input.checked = target;
    input.dispatchEvent(new Event("change", { bubbles: true }));
    input.dispatchEvent(new Event("input", { bubbles: true }));
  }
  return input.checked;
}"""
