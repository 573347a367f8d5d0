def camel_to_snake_case(name: str) -> str:
    chars = []

    for idx, char in enumerate(name):
        if idx and char.isupper():
            nxt_idx = idx + 1
            next_is_upper = nxt_idx >= len(name) or name[nxt_idx].isupper()
            prev_is_upper = name[idx - 1].isupper()

            # keep acronyms like "AI" together
            if not (prev_is_upper and next_is_upper):
                chars.append("_")
        chars.append(char)

    return "".join(chars)
