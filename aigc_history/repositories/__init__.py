"""Data access for messages, branches and shares."""