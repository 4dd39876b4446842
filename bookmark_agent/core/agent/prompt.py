"""
Agent Prompt Builder

Builds the instruction sent to the language model for a user query.
"""

PROMPT_TEMPLATE = """You are an agent for a bookmark application. Based on the user's input, determine which application action(s) to take. For simple queries, return a single JSON object. For combined or sequential queries, return an array of action objects. Assign each action a numeric "priority" (lower executes earlier). The executor will sort actions by this priority and ignore array order.

User Query: "{query}"

Available Actions:
- searchBookmarks: General search by term (parameters: {{searchTerm: string}})
- showAllBookmarks: Display all bookmarks (no parameters)
- resetSearch: Clear all filters and show all bookmarks (no parameters)
- importBookmarks: Open import/export dialog (no parameters)
- exportBookmarks: Open import/export dialog (no parameters)
- removeDuplicates: Remove duplicate bookmarks by title and URL (no parameters)
- findIncludes: Find by field containing value (parameters: {{field: "title"|"url"|"description"|"tags", value: string}})
- findStartsWith: Find by field starting with a value (parameters: {{field: "title"|"url"|"description"|"tags", value: string}})
- findWithTags: Find bookmarks with specific tags (parameters: {{includeTags: string[], excludeTags?: string[]}})
- filterByRating: Filter bookmarks by rating (parameters: {{minRating?: number, maxRating?: number, comparator?: "gte"|"lte"|"eq", exact?: number}})
- sortBookmarks: Sort bookmarks by a specific field and order (parameters: {{sortBy: "title"|"rating"|"url"|"folder"|"createdAt"|"updatedAt", order: "asc"|"desc"}})
- limitResults: Limit the number of results (parameters: {{count: number, direction?: "first"|"last", scope?: "current"|"all"}})
- limitFirst: Keep the first N of the current results (parameters: {{count: number}})
- limitLast: Keep the last N of the current results (parameters: {{count: number}})
- reorder: Persist order across ALL bookmarks (parameters: {{sortBy: "title"|"rating"|"url"|"folder", order: "asc"|"desc"}})
- reorderAscending: Persist ascending order across ALL bookmarks (optional parameters: {{sortBy}})
- reorderDescending: Persist descending order across ALL bookmarks (optional parameters: {{sortBy}})
- persistSortedOrder: Persist order across ALL bookmarks (parameters: {{sortBy?: "title"|"rating"|"url"|"folder", order: "asc"|"desc"}})
- help: Show available commands and usage (no parameters)

Priority should be set to match the order of the user's request.
Example:
   Input: show first 10 in descending order
   Output: [
    {{ "action": "sortBookmarks", "parameters": {{ "sortBy": "title", "order": "desc" }}, "priority": 1 }},
    {{ "action": "limitFirst", "parameters": {{ "count": 10 }}, "priority": 2 }}
   ]

Output schema: For each action, include: {{ "action": string, "parameters": object, "priority": number }}.

Respond with ONLY a JSON object or an array of JSON objects, wrapped in a markdown code block. Do not include any other text or formatting."""


def build_prompt(query: str) -> str:
    """
    Build the agent prompt for a user query.

    Args:
        query: Raw user text

    Returns:
        Prompt text ready to send to a language model
    """
    safe_query = query.strip().replace('"', '\\"')
    return PROMPT_TEMPLATE.format(query=safe_query)
