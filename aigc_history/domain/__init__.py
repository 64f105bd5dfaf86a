"""Domain types: messages, content, conversations, branches and shares."""