"""HTTP primitives: the request envelope, headers, query, cookies, responses."""
