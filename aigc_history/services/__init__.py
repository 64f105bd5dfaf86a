"""Business operations over conversations, branches, forks and shares."""